"""Framework-agnostic module controllers."""
