"""Data-access layer for the personal notes service."""
