"""UI-agnostic modal command engine for a library of items."""

__all__ = [
    "actions",
    "adapters",
    "keymaps",
    "library",
    "modes",
    "runtime",
]

__version__ = "0.1.0"
