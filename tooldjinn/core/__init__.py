"""Output engine: formatting, budgets, and the per-session response store."""
