"""Discord integration: bot, cogs and voice adapters."""
