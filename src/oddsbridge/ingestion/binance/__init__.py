"""Binance spot/futures adapter."""
