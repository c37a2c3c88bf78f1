"""Backoffice service: user administration module and backend entry point."""
