"""Map boundary, overlay renderer and reconciliation."""
