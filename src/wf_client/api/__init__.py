"""REST client and wire models for the workflow API."""
