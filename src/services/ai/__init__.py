"""AI provider client construction."""
