"""Task runner building blocks: job contexts, scopes, action handlers, storage and plugin sources."""

__version__ = "0.1.0"