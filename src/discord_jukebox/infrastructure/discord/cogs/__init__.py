"""Discord cogs (slash command groups)."""
