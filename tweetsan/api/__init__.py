"""tweetsan API package.

This module provides an optional FastAPI service layer around the core
sanitiser, with a live-editable allow-list.
"""

from .server import create_app  # noqa: F401
