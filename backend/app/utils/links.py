"""Helpers for user-supplied profile links"""
from typing import Optional


def ensure_scheme(url: Optional[str]) -> Optional[str]:
    """
    Prefix https:// when a link was stored without a scheme.

    >>> ensure_scheme("linkedin.com/in/ada")
    'https://linkedin.com/in/ada'
    >>> ensure_scheme("http://example.com")
    'http://example.com'
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    if url.lower().startswith(("http://", "https://")):
        return url
    return f"https://{url}"
