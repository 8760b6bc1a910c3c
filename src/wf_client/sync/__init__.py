"""Reconciliation of local definitions with the workflow API."""
