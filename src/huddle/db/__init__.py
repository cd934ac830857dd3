"""Reference async SQLAlchemy storage collaborator."""
