"""Function-style repositories over the SQLAlchemy engine."""
