"""Users, roles and the user directory service."""
