"""Kalshi adapter."""
