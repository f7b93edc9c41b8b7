"""REST API client built on httpx."""
