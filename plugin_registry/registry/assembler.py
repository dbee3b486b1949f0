"""Registry assembler — discovery → fetch → validate → accumulate.

One bad repository never aborts a build: missing manifests, transport
failures and rejected manifests are logged and skipped. Only a failed
discovery is fatal, and it happens before any manifest is fetched.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from plugin_registry.manifest.validator import validate_manifest
from plugin_registry.registry.models import (
    BuildResult,
    DiscoveryItem,
    RegistryDocument,
    RegistryEntry,
    SkippedItem,
    SkipReason,
    format_timestamp,
)
from plugin_registry.sources.github import FetchResult

logger = logging.getLogger(__name__)


class ManifestSource(Protocol):
    def discover(self, topic: str) -> list[DiscoveryItem]: ...

    def fetch_manifest(self, item: DiscoveryItem) -> FetchResult: ...

    def manifest_url(self, item: DiscoveryItem) -> str: ...


@dataclass(frozen=True)
class _ItemOutcome:
    entry: RegistryEntry | None = None
    skipped: SkippedItem | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegistryAssembler:
    """Builds a registry document from everything a source can discover.

    With ``workers > 1`` manifests are fetched concurrently, but entries are
    always emitted in discovery order.
    """

    def __init__(
        self,
        source: ManifestSource,
        workers: int = 1,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.source = source
        self.workers = max(1, workers)
        self.clock = clock

    def build(self, topic: str) -> RegistryDocument:
        return self.assemble(topic).document

    def assemble(self, topic: str) -> BuildResult:
        """Run the full pipeline and report skipped repositories alongside the document.

        Raises:
            DiscoveryFailure: The topic search failed.
        """
        items = self.source.discover(topic)

        if self.workers == 1 or len(items) <= 1:
            outcomes = [self._process(item) for item in items]
        else:
            slots: list[_ItemOutcome | None] = [None] * len(items)
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = {pool.submit(self._process, item): i for i, item in enumerate(items)}
                for future, index in futures.items():
                    slots[index] = future.result()
            outcomes = [o for o in slots if o is not None]

        entries: list[RegistryEntry] = []
        skipped: list[SkippedItem] = []
        for outcome in outcomes:
            if outcome.entry is not None:
                entries.append(outcome.entry)
            elif outcome.skipped is not None:
                skipped.append(outcome.skipped)

        document = RegistryDocument(
            updated_at=format_timestamp(self.clock()),
            plugins=entries,
        )
        logger.info(
            "Registry built with %d plugins (%d skipped)", len(entries), len(skipped)
        )
        return BuildResult(document=document, skipped=skipped)

    def _process(self, item: DiscoveryItem) -> _ItemOutcome:
        """Fetch, validate and normalize one repository's manifest."""
        logger.debug("Checking: %s", item.full_name)

        fetched = self.source.fetch_manifest(item)

        if fetched.status == FetchResult.NOT_FOUND:
            logger.info("%s: no plugin manifest found (HTTP %s)", item.full_name, fetched.status_code)
            return _ItemOutcome(
                skipped=SkippedItem(item, SkipReason.NOT_FOUND, f"HTTP {fetched.status_code}")
            )

        if fetched.status == FetchResult.FAILED:
            logger.warning("%s: manifest fetch failed: %s", item.full_name, fetched.error)
            return _ItemOutcome(
                skipped=SkippedItem(item, SkipReason.TRANSPORT_FAILURE, fetched.error)
            )

        result = validate_manifest(fetched.manifest)
        if not result.accepted:
            logger.warning("%s: invalid manifest: %s", item.full_name, result.rejection.message)
            return _ItemOutcome(
                skipped=SkippedItem(item, SkipReason.REJECTED, result.rejection.message)
            )

        entry = RegistryEntry.from_manifest(
            fetched.manifest, item, self.source.manifest_url(item)
        )
        logger.info("%s: valid plugin: %s", item.full_name, entry.name)
        return _ItemOutcome(entry=entry)
