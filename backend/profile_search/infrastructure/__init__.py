"""Infrastructure Layer — database, record store and logging.

Invariants:
    - Infrastructure depends on core/, never the other way around
    - All store calls wrapped with timeout and error mapping
"""
