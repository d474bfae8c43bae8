"""Model Context Protocol types, function-based tool handlers and an asyncio client."""

__version__ = "0.1.0"