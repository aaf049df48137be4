"""SearchRelay — web search with soft-redirect resolution and page distillation."""

__version__ = "0.1.0"
