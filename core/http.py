import httpx

from core.config import settings


def http_client(**kwargs) -> httpx.AsyncClient:
    """Outbound client shared by the order lookup and the gateway call."""
    kwargs.setdefault("timeout", settings.HTTP_TIMEOUT_SECONDS)
    return httpx.AsyncClient(**kwargs)
