"""Python SDK client for Nodekit workflows."""
