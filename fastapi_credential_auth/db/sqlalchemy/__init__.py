"""SQLAlchemy storage backend."""
