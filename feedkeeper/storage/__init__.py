"""Persistence of retrieved feeds."""

from .codec import load_document, save_document, suggested_filename

__all__ = ["load_document", "save_document", "suggested_filename"]
