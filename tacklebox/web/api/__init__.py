"""tacklebox API package."""
