"""Adapters – concrete transports for the backend services."""
