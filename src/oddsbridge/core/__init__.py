"""Probability normalization, descriptor extraction, categorization and comparable-market assembly."""
