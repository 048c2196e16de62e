"""Service Layer — async orchestration of the pure core around the record store."""
