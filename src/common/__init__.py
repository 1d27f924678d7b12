"""Common shared utilities for the style assistant."""

from common.config import Settings
from common.logging import setup_logging

__all__ = ["Settings", "setup_logging"]
