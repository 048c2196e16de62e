"""Profile Search — query validation and fuzzy-filter engine for user profiles.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
