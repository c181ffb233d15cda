"""Logging and metrics for ocmvector."""
