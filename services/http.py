import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.config import settings


def build_session() -> requests.Session:
    """Session for third-party APIs: GETs retry with backoff, writes are never retried."""
    retry = Retry(
        total=settings.HTTP_READ_RETRIES,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


http_session = build_session()
