"""Exception hierarchy for the style assistant."""

from __future__ import annotations


class StylistError(Exception):
    """Base class for style assistant errors."""


class CatalogError(StylistError):
    """Bundled catalog data is missing or malformed."""
