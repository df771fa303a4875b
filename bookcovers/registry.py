"""Book.io collection registry client."""

import logging
from dataclasses import dataclass

from bookcovers.config import Settings
from bookcovers.errors import RegistryMalformed, RegistryUnavailable
from bookcovers.transport import build_headers, get_json


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionRecord:
    """One registry entry: a collection identifier and the chain it lives on."""

    identifier: str
    chain: str


def parse_collections(payload) -> list[CollectionRecord]:
    """Normalize a registry response body into collection records."""
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise RegistryMalformed("registry response must be an object with a 'data' array")

    records = []
    for idx, entry in enumerate(payload["data"]):
        if not isinstance(entry, dict):
            raise RegistryMalformed(f"registry entry {idx} is not an object")
        identifier = entry.get("collection_id")
        chain = entry.get("blockchain")
        if not isinstance(identifier, str) or not isinstance(chain, str):
            raise RegistryMalformed(f"registry entry {idx} lacks string 'collection_id'/'blockchain' fields")
        records.append(CollectionRecord(identifier=identifier, chain=chain))
    return records


class RegistryClient:
    """Read-only client for the publisher's collection listing."""

    def __init__(self, settings: Settings | None = None, logger=None):
        self.settings = settings or Settings()
        self.log = logger or log

    def fetch_collections(self) -> list[CollectionRecord]:
        """Fetch the full registry snapshot."""
        payload = get_json(
            self.settings.registry_url,
            headers=build_headers("application/json"),
            timeout=self.settings.timeout,
            unavailable=RegistryUnavailable,
            malformed=RegistryMalformed,
        )
        records = parse_collections(payload)
        self.log.debug(f"registry lists {len(records):,} collection(s)")
        return records

    def is_known_collection(self, identifier: str) -> bool:
        """Return True when the identifier is registered on the target chain."""
        assert identifier, "identifier cannot be empty"
        target_chain = self.settings.target_chain
        for record in self.fetch_collections():
            if record.identifier == identifier and record.chain == target_chain:
                return True
        return False
