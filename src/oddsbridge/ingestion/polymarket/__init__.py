"""Polymarket Gamma adapter."""
