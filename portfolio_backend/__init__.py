"""
Backend package for the portfolio site.

Provides a FastAPI application exposing portfolio content through a
GraphQL schema and a small REST surface, on top of a pluggable record
store (in-memory for development, SQLAlchemy for deployments).
"""
