"""HTTP download of the raw CSV inputs, with retry and an on-disk TTL cache."""
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from utz import err

from .paths import CACHE

ASSESSMENTS_URL = "https://raw.githubusercontent.com/PittsburghPG/scraper-allegheny-county-muni-profiles/main/data/muni-real-estate-time-series.csv"


def parse_ttl(ttl: Union[str, int, float, timedelta, None]) -> Optional[timedelta]:
    """
    Parse TTL value into timedelta.

    Accepts:
        - None: no TTL (use cache forever)
        - int/float: seconds
        - str: e.g. "1h", "2d", "30m", "1w"
        - timedelta: pass through
    """
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        return ttl
    if isinstance(ttl, (int, float)):
        return timedelta(seconds=ttl)
    if isinstance(ttl, str):
        units = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400, 'w': 604800}
        if ttl and ttl[-1] in units:
            return timedelta(seconds=float(ttl[:-1]) * units[ttl[-1]])
        return timedelta(seconds=float(ttl))
    raise ValueError(f"Invalid TTL: {ttl}")


class CSVClient:
    """Downloads CSV text, caching each URL's body under `cache_dir`."""

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else CACHE
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.client = httpx.Client(timeout=timeout, follow_redirects=True, transport=transport)

    def cache_path(self, url: str) -> Path:
        """Cache file for `url` (named after the URL's last path segment)."""
        name = Path(urlparse(url).path).name or "download.csv"
        return self.cache_dir / name

    def _load_cache(self, path: Path, ttl: Optional[timedelta] = None) -> Optional[str]:
        """Load cached body if it exists and has not expired."""
        if not path.exists():
            return None
        if ttl is not None:
            mtime = datetime.fromtimestamp(path.stat().st_mtime)
            if datetime.now() - mtime > ttl:
                return None  # Cache expired
        return path.read_text()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _get(self, url: str) -> str:
        """GET with retry on connection/timeout errors; HTTP errors raise immediately."""
        resp = self.client.get(url)
        resp.raise_for_status()
        return resp.text

    def fetch_text(
        self,
        url: str = ASSESSMENTS_URL,
        use_cache: bool = True,
        ttl: Union[str, int, float, timedelta, None] = None,
    ) -> str:
        """
        Fetch the body of `url`.

        Args:
            url: CSV location (default: the county assessment time series)
            use_cache: Whether to use/update the local cache
            ttl: Cache TTL - None=forever, or "1h", "2d", 3600, etc.

        Returns:
            Response text
        """
        path = self.cache_path(url)
        if use_cache:
            cached = self._load_cache(path, ttl=parse_ttl(ttl))
            if cached is not None:
                err(f"Using cached {path}")
                return cached

        err(f"Fetching {url}")
        text = self._get(url)
        if use_cache:
            path.write_text(text)
        return text

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
