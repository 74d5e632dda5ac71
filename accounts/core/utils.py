"""
Utility helpers shared across services.
"""

from .config import get_settings


def absolute_url(path: str) -> str:
    """
    Turn a relative client path into an absolute URL on PUBLIC_BASE_URL.
    """
    settings = get_settings()
    base_url = settings.public_base_url.rstrip("/")
    if not path:
        return base_url + "/"
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return base_url + path
