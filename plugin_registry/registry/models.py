"""Registry data models — discovery items, entries, and the registry document."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from plugin_registry import REGISTRY_SCHEMA_VERSION


@dataclass(frozen=True)
class DiscoveryItem:
    """A repository returned by the topic search."""

    full_name: str  # owner/name
    default_branch: str
    html_url: str
    stars: int = 0
    updated_at: str = ""  # ISO 8601, as reported by GitHub
    license: str | None = None  # SPDX id

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[-1]

    @classmethod
    def from_api(cls, data: dict) -> DiscoveryItem:
        """Build from one item of a ``/search/repositories`` response."""
        license_info = data.get("license") or {}
        return cls(
            full_name=data["full_name"],
            default_branch=data.get("default_branch") or "main",
            html_url=data.get("html_url", ""),
            stars=data.get("stargazers_count", 0),
            updated_at=data.get("updated_at", ""),
            license=license_info.get("spdx_id"),
        )


@dataclass
class RegistryEntry:
    """A validated plugin as it appears in the registry."""

    # Identity
    name: str
    version: str
    author: str
    description: str = ""

    # Location
    repo: str = ""
    manifest_url: str = ""

    # Runtime declaration
    type: str = "js"
    entry: str = ""
    permissions: list[str] = field(default_factory=list)
    ui_slots: list[str] | None = None
    icon: str | None = None

    # Classification
    homepage: str = ""
    category: str | None = None
    tags: list[str] | None = None
    license: str | None = None

    # Registry metadata
    curated: bool = False
    verified: bool = False
    stars: int = 0
    downloads: int = 0  # filled in by the download counter, never here
    last_updated: str = ""

    @classmethod
    def from_manifest(cls, manifest: dict, item: DiscoveryItem, manifest_url: str) -> RegistryEntry:
        """Normalize an accepted manifest, filling defaults from the repository.

        The manifest must already have passed validation.
        """
        return cls(
            name=manifest["name"],
            version=manifest["version"],
            author=manifest["author"],
            description=manifest.get("description") or "",
            repo=item.html_url,
            manifest_url=manifest_url,
            type=manifest["type"],
            entry=manifest["entry"],
            permissions=list(manifest["permissions"]),
            ui_slots=manifest.get("ui_slots"),
            icon=manifest.get("icon"),
            homepage=manifest.get("homepage") or item.html_url,
            category=manifest.get("category"),
            tags=manifest.get("tags"),
            license=manifest.get("license") or item.license,
            stars=item.stars,
            last_updated=item.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        manifest: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "author": self.author,
            "description": self.description,
            "repo": self.repo,
            "manifest_url": self.manifest_url,
            "type": self.type,
            "entry": self.entry,
            "permissions": self.permissions,
            "ui_slots": self.ui_slots,
            "icon": self.icon,
            "homepage": self.homepage,
            "category": self.category,
            "tags": self.tags,
            "license": self.license,
        }
        return {
            "manifest": {k: v for k, v in manifest.items() if v is not None},
            "curated": self.curated,
            "verified": self.verified,
            "repo": self.repo,
            "manifest_url": self.manifest_url,
            "stars": self.stars,
            "downloads": self.downloads,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RegistryEntry:
        manifest = data.get("manifest", {})
        return cls(
            name=manifest["name"],
            version=manifest["version"],
            author=manifest["author"],
            description=manifest.get("description", ""),
            repo=data.get("repo", manifest.get("repo", "")),
            manifest_url=data.get("manifest_url", manifest.get("manifest_url", "")),
            type=manifest.get("type", "js"),
            entry=manifest.get("entry", ""),
            permissions=manifest.get("permissions", []),
            ui_slots=manifest.get("ui_slots"),
            icon=manifest.get("icon"),
            homepage=manifest.get("homepage", ""),
            category=manifest.get("category"),
            tags=manifest.get("tags"),
            license=manifest.get("license"),
            curated=data.get("curated", False),
            verified=data.get("verified", False),
            stars=data.get("stars", 0),
            downloads=data.get("downloads", 0),
            last_updated=data.get("lastUpdated", ""),
        )


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision, e.g. ``2024-01-31T12:00:00.000Z``."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class RegistryDocument:
    """The registry artifact consumed by the host application."""

    updated_at: str
    plugins: list[RegistryEntry] = field(default_factory=list)
    version: str = REGISTRY_SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "plugins": [entry.to_dict() for entry in self.plugins],
        }

    @classmethod
    def from_dict(cls, data: dict) -> RegistryDocument:
        return cls(
            version=data.get("version", REGISTRY_SCHEMA_VERSION),
            updated_at=data.get("updated_at", ""),
            plugins=[RegistryEntry.from_dict(p) for p in data.get("plugins", [])],
        )


class SkipReason(Enum):
    NOT_FOUND = "not_found"
    TRANSPORT_FAILURE = "transport_failure"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SkippedItem:
    """A discovered repository that contributed no entry."""

    item: DiscoveryItem
    reason: SkipReason
    detail: str = ""


@dataclass
class BuildResult:
    """The registry document plus what was left out of it and why."""

    document: RegistryDocument
    skipped: list[SkippedItem] = field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.document.plugins)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
