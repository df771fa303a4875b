"""IPFS gateway download with atomic writes into the output directory."""

import hashlib, logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from bookcovers.config import EnvCredentialProvider, Settings
from bookcovers.errors import GatewayUnavailable, WriteFailed
from bookcovers.transport import build_headers, iter_chunks, join_url, open_url


COVER_SUFFIX = ".png"
log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of storing one cover on disk."""

    path: Path
    skipped: bool
    bytes_written: int = 0
    sha256: str | None = None


def get_cover_path(output_dir: str | Path, display_name: str) -> Path:
    """Return the destination file for a cover display name."""
    assert display_name, "display_name cannot be empty"
    return Path(output_dir) / f"{display_name}{COVER_SUFFIX}"


class ContentFetcher:
    """Download cover bytes from the gateway and store them once per display name."""

    service = "gateway"

    def __init__(self, settings: Settings | None = None, credentials=None, logger=None):
        self.settings = settings or Settings()
        self.credentials = credentials or EnvCredentialProvider()
        self.log = logger or log

    def fetch_and_store(self, content_location: str, display_name: str, output_dir: str | Path) -> FetchResult:
        """Fetch one content id and write it to ``<output_dir>/<display_name>.png``.

        An existing destination is treated as complete and left untouched. New
        files are streamed to a ``.part`` sibling and renamed into place.
        """
        assert content_location, "content_location cannot be empty"
        project_id = self.credentials.get(self.service)
        url = join_url(self.settings.gateway_url, quote(content_location, safe="/"))
        headers = build_headers("application/octet-stream", project_id)

        with open_url(url, headers=headers, timeout=self.settings.timeout, unavailable=GatewayUnavailable) as response:
            output_path = Path(output_dir)
            try:
                output_path.mkdir(parents=True, exist_ok=True)
            except OSError as err:
                raise WriteFailed(f"unable to create output directory {output_path} ({err})") from err

            cover_fp = get_cover_path(output_path, display_name)
            if cover_fp.exists():
                self.log.info(f"file {cover_fp} already exists, skipping download")
                return FetchResult(path=cover_fp, skipped=True)

            result = self._write_atomic(response, cover_fp, url)

        self.log.info(f"saved {result.bytes_written:,} bytes to\n    {cover_fp}\n    sha256={result.sha256}")
        return result

    def _write_atomic(self, response, cover_fp: Path, url: str) -> FetchResult:
        """Stream a response body to a temporary file, digesting it, then atomically replace the target."""
        part_fp = cover_fp.with_name(f"{cover_fp.name}.part")
        hasher = hashlib.sha256()
        bytes_written = 0
        try:
            # ValueError covers names the OS cannot represent (e.g. embedded NUL).
            try:
                stream = part_fp.open("wb")
            except (OSError, ValueError) as err:
                raise WriteFailed(f"unable to open {part_fp!r} for writing ({err})") from err
            with stream:
                for chunk in iter_chunks(response, url=url, unavailable=GatewayUnavailable):
                    try:
                        stream.write(chunk)
                    except OSError as err:
                        raise WriteFailed(f"unable to write {part_fp} ({err})") from err
                    hasher.update(chunk)
                    bytes_written += len(chunk)
            try:
                part_fp.replace(cover_fp)
            except (OSError, ValueError) as err:
                raise WriteFailed(f"unable to move {part_fp!r} to {cover_fp!r} ({err})") from err
        finally:
            if part_fp.is_file():
                part_fp.unlink()
        return FetchResult(path=cover_fp, skipped=False, bytes_written=bytes_written, sha256=hasher.hexdigest())
