"""Tool handlers, request validation, and process execution."""
