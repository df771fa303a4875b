"""Pytest fixtures for bookcovers tests."""

import io, json
from urllib.error import HTTPError, URLError

import pytest

from bookcovers.config import Settings


REGISTRY_URL = "https://registry.test/collections"
ASSETS_URL = "https://ledger.test/assets/"
ASSETS_POLICY_URL = "https://ledger.test/assets/policy/"
GATEWAY_URL = "https://gateway.test/ipfs/"


class FakeResponse(io.BytesIO):
    """Minimal stand-in for the object returned by urlopen."""

    def __init__(self, body: bytes, headers: dict | None = None):
        super().__init__(body)
        self.headers = headers if headers is not None else {"Content-Length": str(len(body))}
        self.status = 200


class FakeNetwork:
    """Route urlopen calls to canned responses keyed by URL."""

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests = []

    def add_json(self, url: str, payload) -> None:
        self.routes[url] = json.dumps(payload).encode("utf-8")

    def add_bytes(self, url: str, body: bytes) -> None:
        self.routes[url] = body

    def add_error(self, url: str, code: int = 500) -> None:
        self.routes[url] = code

    def add_unreachable(self, url: str) -> None:
        self.routes[url] = URLError("connection refused")

    @property
    def urls(self) -> list[str]:
        return [request.full_url for request in self.requests]

    def urlopen(self, request, timeout=None):
        self.requests.append(request)
        url = request.full_url
        if url not in self.routes:
            raise HTTPError(url, 404, "Not Found", {}, None)
        route = self.routes[url]
        if isinstance(route, URLError):
            raise route
        if isinstance(route, int):
            raise HTTPError(url, route, "Server Error", {}, None)
        return FakeResponse(route)


#===============================================================================
# pytest custom config------------
#===============================================================================


def pytest_runtest_teardown(item, nextitem):
    """Custom teardown message."""
    test_name = item.name
    print(f"\n{'='*20} Test completed: {test_name} {'='*20}\n\n\n")


def pytest_report_header(config):
    """Show pytest invocation arguments in the test header."""
    return f"pytest arguments: {' '.join(config.invocation_params.args)}"


# -------------------
# ----- Fixtures -----
# -------------------
@pytest.fixture(scope="function")
def network(monkeypatch) -> FakeNetwork:
    """Replace urlopen in the transport module with an in-memory router."""
    fake = FakeNetwork()
    monkeypatch.setattr("bookcovers.transport.urlopen", fake.urlopen)
    return fake


@pytest.fixture(scope="function")
def settings() -> Settings:
    """Settings pointing at the fake endpoints."""
    return Settings(
        registry_url=REGISTRY_URL,
        assets_url=ASSETS_URL,
        assets_policy_url=ASSETS_POLICY_URL,
        gateway_url=GATEWAY_URL,
        timeout=5.0,
    )


@pytest.fixture(scope="function")
def credentials():
    """Credential provider backed by a fixed in-memory environment."""
    from bookcovers.config import EnvCredentialProvider

    return EnvCredentialProvider(environ={"CARDANO_PROJECT_ID": "ledger-key", "IPFS_PROJECT_ID": "gateway-key"})


def registry_payload(*entries: tuple[str, str]) -> dict:
    """Build a registry response body from (collection_id, blockchain) pairs."""
    return {"data": [{"collection_id": cid, "blockchain": chain} for cid, chain in entries]}


def metadata_payload(asset_id: str, name: str | None = None, src: str | None = None) -> dict:
    """Build an asset metadata document with one cover file."""
    metadata = {"files": [{"src": src or f"ipfs://Qm{asset_id}", "mediaType": "image/png"}]}
    if name is not None:
        metadata["name"] = name
    return {"asset": asset_id, "onchain_metadata": metadata}


@pytest.fixture(scope="function")
def collection_factory(network: FakeNetwork):
    """Register a Book.io policy with ``member_count`` assets on the fake network."""

    def _build(policy_id: str, member_count: int, registered: bool = True) -> list[str]:
        entries = [("other_policy", "cardano"), ("evm_policy", "polygon")]
        if registered:
            entries.append((policy_id, "cardano"))
        network.add_json(REGISTRY_URL, registry_payload(*entries))

        asset_ids = [f"{policy_id}asset{idx:02d}" for idx in range(member_count)]
        network.add_json(f"{ASSETS_POLICY_URL}{policy_id}", [{"asset": aid, "quantity": "1"} for aid in asset_ids])
        for idx, asset_id in enumerate(asset_ids):
            network.add_json(f"{ASSETS_URL}{asset_id}", metadata_payload(asset_id, name=f"Book {idx:02d}"))
            network.add_bytes(f"{GATEWAY_URL}Qm{asset_id}", f"png-bytes-{idx}".encode("utf-8"))
        return asset_ids

    return _build
