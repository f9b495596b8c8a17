"""The Odds API adapter."""
