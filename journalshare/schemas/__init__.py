"""Pydantic schemas: request/response bodies and detail schemas."""
