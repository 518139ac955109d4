"""API gateway core: WebSocket frame handling, header/query transformers and extension hooks."""

__version__ = "0.1.0a0"