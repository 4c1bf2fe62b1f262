"""API routers for the web service."""
