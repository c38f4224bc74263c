"""HTTP client utilities for talking to the tweetsan API.

Notes:
- Treat server responses as untrusted input.
- Avoid printing or logging raw tweet bodies.
"""
from .http import API_KEY_HEADER, HttpResponse, TweetsanHttpClient

__all__ = ["API_KEY_HEADER", "HttpResponse", "TweetsanHttpClient"]
