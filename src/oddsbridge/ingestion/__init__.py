"""Upstream REST adapters, one per source."""
