"""tacklebox package."""
