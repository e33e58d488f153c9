"""Domain layer: roles, types, access model, exceptions. No infrastructure imports."""
