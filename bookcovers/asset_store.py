"""Cardano ledger indexer client and sample selection."""

import logging
from dataclasses import dataclass
from urllib.parse import quote

from bookcovers.config import EnvCredentialProvider, Settings
from bookcovers.errors import (
    AssetStoreMalformed,
    AssetStoreUnavailable,
    InsufficientAssets,
    MetadataMalformed,
    MetadataUnavailable,
)
from bookcovers.resolver import CoverRef, parse_cover
from bookcovers.transport import build_headers, get_json, join_url


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetRef:
    """One member of a collection as listed by the indexer; ``asset_id`` is None for unusable entries."""

    asset_id: str | None


def parse_members(payload) -> list[AssetRef]:
    """Normalize a membership response body, preserving server order.

    Only a non-array body is rejected. Entries without a string ``asset`` keep their
    position as ``AssetRef(None)`` and fail later as a single item if sampled.
    """
    if not isinstance(payload, list):
        raise AssetStoreMalformed("membership response must be a JSON array")

    members = []
    for idx, entry in enumerate(payload):
        asset_id = entry.get("asset") if isinstance(entry, dict) else None
        if not isinstance(asset_id, str) or not asset_id:
            log.debug(f"membership entry {idx} lacks a string 'asset' field")
            asset_id = None
        members.append(AssetRef(asset_id=asset_id))
    return members


def select_sample(members: list[AssetRef], offset: int = 1, count: int = 10) -> list[AssetRef]:
    """Return ``count`` members starting at ``offset``.

    The collection must hold strictly more than ``offset + count`` members, so the
    defaults skip position 0 and need at least 12 members.
    """
    assert offset >= 0, f"offset must be >= 0, got {offset}"
    assert count >= 1, f"count must be >= 1, got {count}"
    if len(members) <= offset + count:
        raise InsufficientAssets(observed=len(members), required=offset + count + 1)
    return list(members[offset:offset + count])


class AssetStoreClient:
    """Read-only queries against the ledger indexer (Blockfrost)."""

    service = "ledger"

    def __init__(self, settings: Settings | None = None, credentials=None, logger=None):
        self.settings = settings or Settings()
        self.credentials = credentials or EnvCredentialProvider()
        self.log = logger or log

    def _headers(self) -> dict[str, str]:
        return build_headers("application/json", self.credentials.get(self.service))

    def list_members(self, identifier: str) -> list[AssetRef]:
        """List the assets registered under a collection identifier (single page)."""
        assert identifier, "identifier cannot be empty"
        payload = get_json(
            join_url(self.settings.assets_policy_url, quote(identifier, safe="")),
            headers=self._headers(),
            timeout=self.settings.timeout,
            unavailable=AssetStoreUnavailable,
            malformed=AssetStoreMalformed,
        )
        members = parse_members(payload)
        self.log.info(f"collection {identifier} reports {len(members):,} asset(s)")
        return members

    def fetch_metadata(self, asset_id: str) -> dict:
        """Fetch the metadata document for one asset."""
        assert asset_id, "asset_id cannot be empty"
        payload = get_json(
            join_url(self.settings.assets_url, quote(asset_id, safe="")),
            headers=self._headers(),
            timeout=self.settings.timeout,
            unavailable=MetadataUnavailable,
            malformed=MetadataMalformed,
        )
        if not isinstance(payload, dict):
            raise MetadataMalformed(f"metadata for {asset_id} is not a JSON object")
        return payload

    def resolve_cover(self, asset_id: str) -> CoverRef:
        """Resolve the cover content id and display name for one asset."""
        cover = parse_cover(self.fetch_metadata(asset_id))
        self.log.debug(f"resolved {asset_id} -> ipfs://{cover.content_location} ('{cover.display_name}')")
        return cover
