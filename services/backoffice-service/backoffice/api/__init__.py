"""HTTP routers and request/response models."""
