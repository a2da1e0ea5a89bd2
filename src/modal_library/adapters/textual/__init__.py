"""Textual adapter; ``app`` needs the optional ``textual`` dependency."""

from .controller import TextualLibraryAdapter, TextualUIHooks, translate_key

__all__ = ["TextualLibraryAdapter", "TextualUIHooks", "translate_key"]
