"""Derived selection state and persisted user settings."""
