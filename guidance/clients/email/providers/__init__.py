"""Email provider implementations."""
