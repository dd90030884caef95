"""Application package for the student enrollment backend.

This package exposes the service, repository and model modules used by
the FastAPI application and the bulk upload script. It is intentionally
lightweight; individual modules contain the concrete implementations
and documentation.
"""
