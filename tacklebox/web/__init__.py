"""WEB API for tacklebox."""
