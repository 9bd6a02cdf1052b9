"""Core infrastructure: configuration, database, auth and observability."""
