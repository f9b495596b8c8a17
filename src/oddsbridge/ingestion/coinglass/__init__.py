"""Coinglass derivatives analytics adapter."""
