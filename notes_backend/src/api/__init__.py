"""FastAPI transport for the personal notes service."""
