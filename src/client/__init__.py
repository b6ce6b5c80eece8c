"""Python client for the VIBES generation API and its local state."""
