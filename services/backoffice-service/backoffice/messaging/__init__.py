"""Flash messages."""
