"""Exception types raised by the cover download workflow."""


class BookCoversError(Exception):
    """Base class for all bookcovers failures."""

    kind = "error"


class ConfigError(BookCoversError):
    """Settings file or override values are invalid."""

    kind = "config_error"


class RegistryUnavailable(BookCoversError):
    """Collection registry could not be reached or returned a failure status."""

    kind = "registry_unavailable"


class RegistryMalformed(BookCoversError):
    """Collection registry response does not have the expected shape."""

    kind = "registry_malformed"


class UnknownCollection(BookCoversError):
    """Identifier is absent from the registry or registered on another chain."""

    kind = "unknown_collection"

    def __init__(self, identifier: str, chain: str):
        self.identifier = identifier
        self.chain = chain
        super().__init__(f"{identifier} is not a known {chain} collection (absent from registry or on another chain)")


class AssetStoreUnavailable(BookCoversError):
    """Ledger indexer membership query failed."""

    kind = "asset_store_unavailable"


class AssetStoreMalformed(BookCoversError):
    """Ledger indexer membership response is not a list of asset references."""

    kind = "asset_store_malformed"


class InsufficientAssets(BookCoversError):
    """Collection holds too few members for the sampling window."""

    kind = "insufficient_assets"

    def __init__(self, observed: int, required: int, identifier: str | None = None):
        self.observed = observed
        self.required = required
        self.identifier = identifier
        subject = f"policy {identifier}" if identifier else "collection"
        super().__init__(f"{subject} has only {observed} assets (at least {required} required)")


class CoverError(BookCoversError):
    """Failure confined to a single sampled asset."""

    kind = "cover_error"


class MetadataUnavailable(CoverError):
    """Asset metadata query failed."""

    kind = "metadata_unavailable"


class MetadataMalformed(CoverError):
    """Asset metadata document lacks the cover file or display name."""

    kind = "metadata_malformed"


class InvalidContentUri(CoverError):
    """Cover source URI is not an ipfs:// location."""

    kind = "invalid_content_uri"


class CredentialMissing(CoverError):
    """Required service credential is not set in the environment."""

    kind = "credential_missing"

    def __init__(self, service: str, env_var: str):
        self.service = service
        self.env_var = env_var
        super().__init__(f"environment variable {env_var} is not set (credential for {service} service)")


class GatewayUnavailable(CoverError):
    """Content gateway request failed."""

    kind = "gateway_unavailable"


class WriteFailed(CoverError):
    """Cover bytes could not be written to the output directory."""

    kind = "write_failed"
