"""OddsBridge - MCP tool servers over market-data REST APIs with cross-platform probability normalization."""

__version__ = "0.1.0"
