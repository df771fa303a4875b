"""Extract the high-resolution cover location from asset metadata."""

from typing import NamedTuple

from bookcovers.errors import InvalidContentUri, MetadataMalformed


IPFS_SCHEME = "ipfs://"


class CoverRef(NamedTuple):
    """Gateway content id and output file stem for one cover."""

    content_location: str
    display_name: str


def strip_ipfs_scheme(src: str) -> str:
    """Return the bare content id from an ``ipfs://`` URI."""
    if not src.startswith(IPFS_SCHEME):
        raise InvalidContentUri(f"cover source '{src}' does not start with {IPFS_SCHEME}")
    location = src[len(IPFS_SCHEME):]
    if not location:
        raise InvalidContentUri(f"cover source '{src}' has no content id")
    return location


def _validate_display_name(name) -> str:
    # The name becomes the file stem, so it must not escape the output directory.
    if not isinstance(name, str) or not name.strip():
        raise MetadataMalformed("asset metadata has no display name")
    if "/" in name or "\\" in name or "\x00" in name or name in {".", ".."}:
        raise MetadataMalformed(f"display name {name!r} is not usable as a file name")
    return name


def parse_cover(document) -> CoverRef:
    """Read ``onchain_metadata.files[0].src`` and ``onchain_metadata.name`` from a metadata document."""
    metadata = document.get("onchain_metadata") if isinstance(document, dict) else None
    if not isinstance(metadata, dict):
        raise MetadataMalformed("asset document has no 'onchain_metadata' object")

    files = metadata.get("files")
    if not isinstance(files, list) or not files:
        raise MetadataMalformed("asset metadata has no 'files' entries")
    first_file = files[0]
    src = first_file.get("src") if isinstance(first_file, dict) else None
    if not isinstance(src, str):
        raise MetadataMalformed("first metadata file has no string 'src'")

    return CoverRef(
        content_location=strip_ipfs_scheme(src),
        display_name=_validate_display_name(metadata.get("name")),
    )
