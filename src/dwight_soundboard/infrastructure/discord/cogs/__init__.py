"""Discord cogs - gateway listeners and slash commands."""
