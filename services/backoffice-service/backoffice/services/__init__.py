"""Backend support services."""
