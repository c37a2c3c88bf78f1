"""Authentication, passwords and access tokens."""
