"""UI-agnostic sam/acme structural editing engine."""

__all__ = [
    "adapters",
    "addressing",
    "buffer",
    "commands",
    "errors",
    "host",
    "interpreter",
    "runtime",
    "search",
]

__version__ = "0.1.0"
