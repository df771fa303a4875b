"""Blocking HTTP GET helpers shared by the service clients."""

import json, logging, sys
from contextlib import contextmanager
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


CHUNK_SIZE = 1024 * 1024
log = logging.getLogger(__name__)


def join_url(base_url: str, path: str) -> str:
    """Append one path segment to an endpoint prefix."""
    assert path, "path cannot be empty"
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_headers(accept: str, project_id: str | None = None) -> dict[str, str]:
    """Build request headers with an optional Blockfrost-style project id."""
    headers = {"Accept": accept}
    if project_id is not None:
        headers["project_id"] = project_id
    return headers


@contextmanager
def open_url(url: str, *, headers: dict[str, str] | None = None, timeout: float, unavailable: type[Exception]):
    """Open a GET request and yield the response, mapping transport failures to ``unavailable``."""
    request = Request(url, headers=headers or {}, method="GET")
    log.debug(f"GET {url}")
    try:
        response = urlopen(request, timeout=timeout)  # nosec B310
    except HTTPError as err:
        raise unavailable(f"GET {url} failed (HTTP {err.code})") from err
    except URLError as err:
        raise unavailable(f"GET {url} failed ({err.reason})") from err
    except (OSError, HTTPException) as err:
        raise unavailable(f"GET {url} failed ({err})") from err
    with response:
        yield response


def get_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float,
    unavailable: type[Exception],
    malformed: type[Exception],
):
    """GET a URL and decode its JSON body."""
    with open_url(url, headers=headers, timeout=timeout, unavailable=unavailable) as response:
        try:
            raw = response.read()
        except (OSError, HTTPException) as err:
            raise unavailable(f"GET {url} failed while reading body ({err})") from err
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise malformed(f"GET {url} returned a non-JSON body ({err})") from err


def iter_chunks(response, *, url: str, unavailable: type[Exception], chunk_size: int = CHUNK_SIZE):
    """Yield body chunks from a response, drawing a progress bar on a TTY when the size is known."""
    total_bytes = response.headers.get("Content-Length")
    try:
        total_size = int(total_bytes) if total_bytes else None
    except ValueError:
        total_size = None

    # Only draw a progress bar for TTY stderr with known total size.
    show_progress = bool(total_size) and sys.stderr.isatty()
    downloaded = 0
    while True:
        try:
            chunk = response.read(chunk_size)
        except (OSError, HTTPException) as err:
            raise unavailable(f"GET {url} failed while reading body ({err})") from err
        if not chunk:
            break
        downloaded += len(chunk)
        if show_progress:
            width = 30
            ratio = min(downloaded / total_size, 1.0)
            filled = int(width * ratio)
            bar = "#" * filled + "-" * (width - filled)
            sys.stderr.write(f"\r[{bar}] {ratio * 100:6.2f}% ({downloaded:,}/{total_size:,} bytes)")
            sys.stderr.flush()
        yield chunk

    if show_progress:
        sys.stderr.write("\n")
        sys.stderr.flush()
