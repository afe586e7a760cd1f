"""Persistent storage for user preferences."""
