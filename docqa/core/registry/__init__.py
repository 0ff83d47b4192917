"""In-memory document registry."""

from .document_registry import DocumentRegistry, RegistryEntry, RegistrySnapshot
from .selectors import parse_selectors

__all__ = ["DocumentRegistry", "RegistryEntry", "RegistrySnapshot", "parse_selectors"]
