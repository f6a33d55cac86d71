import asyncio
import logging
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "plancal/1.0"


def normalize_url(url):
    url = (url or "").strip()
    if url.startswith("webcal://"):
        url = "https://" + url[len("webcal://"):]
    return url


def is_remote(location):
    return location.startswith(("http://", "https://", "webcal://"))


def fetch_url(url, timeout=10):
    """Download ``url`` once; any failure raises :class:`FetchError`."""
    url = normalize_url(url)
    req = Request(url, headers={"User-Agent": USER_AGENT, "Accept": "text/calendar, */*"})
    try:
        with urlopen(req, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if status < 200 or status >= 300:
                raise FetchError(f"GET {url} returned {status}", status=status)
            data = response.read()
    except HTTPError as exc:
        raise FetchError(f"GET {url} returned {exc.code}", status=exc.code) from exc
    except (URLError, OSError) as exc:
        raise FetchError(f"GET {url} failed: {exc}") from exc
    charset = response.headers.get_content_charset() or "utf-8"
    return data.decode(charset, errors="ignore")


def read_file(path):
    try:
        return Path(path).expanduser().read_bytes().decode("utf-8", errors="ignore")
    except OSError as exc:
        raise FetchError(f"Cannot read {path}: {exc}") from exc


def fetch_feed(location, timeout=10):
    if not location:
        raise FetchError("No calendar feed configured")
    if is_remote(location):
        return fetch_url(location, timeout=timeout)
    return read_file(location)


async def fetch_feed_async(location, timeout=10):
    return await asyncio.to_thread(fetch_feed, location, timeout)
