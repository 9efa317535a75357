"""JSON file storage backend."""
