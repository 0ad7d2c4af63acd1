"""Infrastructure layer — filesystem adapter and checksum persistence.

This layer depends on stdlib and pydantic only.
It must never import from services, commands, or output.
"""
