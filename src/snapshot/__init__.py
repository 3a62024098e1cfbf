"""Snapshot location, transfer, and SSTable conflict resolution."""
