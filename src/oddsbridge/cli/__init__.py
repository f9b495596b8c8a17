"""CLI - oddsbridge command."""
