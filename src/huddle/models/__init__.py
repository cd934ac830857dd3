"""Pydantic domain models shared by the core and the storage layer."""
