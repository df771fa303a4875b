"""End-to-end cover sampling workflow and its batch report."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from bookcovers.asset_store import AssetStoreClient, select_sample
from bookcovers.config import EnvCredentialProvider, Settings
from bookcovers.errors import CoverError, InsufficientAssets, MetadataMalformed, UnknownCollection
from bookcovers.gateway import ContentFetcher
from bookcovers.registry import RegistryClient


log = logging.getLogger(__name__)

STATUS_SAVED = "saved"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    """Tagged result for one sampled asset."""

    asset_id: str | None
    status: str
    display_name: str | None = None
    path: Path | None = None
    sha256: str | None = None
    error_kind: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "asset_id": self.asset_id,
            "status": self.status,
            "display_name": self.display_name,
            "path": str(self.path) if self.path is not None else None,
            "sha256": self.sha256,
            "error_kind": self.error_kind,
            "error": self.error,
        }


@dataclass
class BatchReport:
    """Per-item outcomes for one workflow run, in sample order."""

    identifier: str
    member_count: int
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def _with_status(self, status: str) -> list[ItemOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == status]

    @property
    def saved(self) -> list[ItemOutcome]:
        return self._with_status(STATUS_SAVED)

    @property
    def skipped(self) -> list[ItemOutcome]:
        return self._with_status(STATUS_SKIPPED)

    @property
    def failed(self) -> list[ItemOutcome]:
        return self._with_status(STATUS_FAILED)

    def to_dict(self) -> dict[str, object]:
        return {
            "identifier": self.identifier,
            "member_count": self.member_count,
            "summary": {
                STATUS_SAVED: len(self.saved),
                STATUS_SKIPPED: len(self.skipped),
                STATUS_FAILED: len(self.failed),
            },
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def process_asset(asset_id: str | None, output_dir: Path, asset_store: AssetStoreClient, fetcher: ContentFetcher, logger=None) -> ItemOutcome:
    """Resolve and fetch one asset's cover, converting per-item failures into an outcome."""
    log = logger or logging.getLogger(__name__)
    display_name = None
    try:
        # Membership entries without an asset id are carried as None so they fail only here.
        if not asset_id:
            raise MetadataMalformed("membership entry has no asset id")
        content_location, display_name = asset_store.resolve_cover(asset_id)
        result = fetcher.fetch_and_store(content_location, display_name, output_dir)
    except CoverError as err:
        log.error(f"asset {asset_id}: {err}")
        log.debug(f"asset {asset_id} failure detail", exc_info=True)
        return ItemOutcome(
            asset_id=asset_id,
            status=STATUS_FAILED,
            display_name=display_name,
            error_kind=err.kind,
            error=str(err),
        )

    if result.skipped:
        return ItemOutcome(asset_id=asset_id, status=STATUS_SKIPPED, display_name=display_name, path=result.path)
    return ItemOutcome(
        asset_id=asset_id,
        status=STATUS_SAVED,
        display_name=display_name,
        path=result.path,
        sha256=result.sha256,
    )


def run_workflow(
    identifier: str,
    output_dir: str | Path,
    *,
    settings: Settings | None = None,
    credentials=None,
    registry: RegistryClient | None = None,
    asset_store: AssetStoreClient | None = None,
    fetcher: ContentFetcher | None = None,
    logger=None,
) -> BatchReport:
    """Validate a policy id, sample its assets and download their covers.

    Raises UnknownCollection when the registry does not list the identifier on the
    target chain and InsufficientAssets when the collection is too small for the
    sampling window. Failures for individual assets are recorded in the report.
    """
    log = logger or logging.getLogger(__name__)
    assert identifier, "identifier cannot be empty"
    settings = settings or Settings()
    credentials = credentials or EnvCredentialProvider()
    registry = registry or RegistryClient(settings, logger=log)
    asset_store = asset_store or AssetStoreClient(settings, credentials, logger=log)
    fetcher = fetcher or ContentFetcher(settings, credentials, logger=log)
    output_path = Path(output_dir)

    # Validate the identifier before touching the ledger indexer.
    if not registry.is_known_collection(identifier):
        raise UnknownCollection(identifier, settings.target_chain)
    log.info(f"{identifier} is a valid Book.io policy id")

    members = asset_store.list_members(identifier)
    try:
        sample = select_sample(members, offset=settings.sample_offset, count=settings.sample_count)
    except InsufficientAssets as err:
        raise InsufficientAssets(err.observed, err.required, identifier=identifier) from err

    log.info(
        "starting cover batch\n"
        f"  identifier={identifier}\n"
        f"  members={len(members):,}\n"
        f"  window=[{settings.sample_offset}, {settings.sample_offset + settings.sample_count})\n"
        f"  output_dir=\n    {output_path}"
    )
    report = BatchReport(identifier=identifier, member_count=len(members))
    for asset in sample:
        report.outcomes.append(process_asset(asset.asset_id, output_path, asset_store, fetcher, logger=log))

    log.info(
        f"finished cover batch for {identifier}: "
        f"saved={len(report.saved)} skipped={len(report.skipped)} failed={len(report.failed)}"
    )
    return report
