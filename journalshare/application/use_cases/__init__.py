"""Use cases grouped by component."""
