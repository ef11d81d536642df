"""docstore Database — SQLAlchemy mapping and sessions for the relational backend."""
