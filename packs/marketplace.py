"""Pack marketplace for discovering remote packs.

Supports:
- Remote pack manifests (``packs-manifest.json``), direct or as a GitHub
  release asset
- Merging remote listings with installed packs
- A local registry of marketplace sources
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import yaml

from hub.config import OFFICIAL_MARKETPLACE_URL

from .fetcher import FetchError, RemoteFetcher
from .manifest import PackInfo

logger = logging.getLogger(__name__)

MANIFEST_ASSET = "packs-manifest.json"
REGISTRY_FILE = "metadata.yml"

_GITHUB_RELEASES = re.compile(
    r"^https?://github\.com/([^/]+)/([^/]+)/releases(?:/(tag/[^/]+|latest))?/?$",
    re.IGNORECASE,
)
_GITHUB_REPO = re.compile(r"github\.com/([^/]+)/([^/]+)")
_SHORTHAND = re.compile(r"^([^/\s]+)/([^/\s]+)$")


class MarketplaceError(Exception):
    """Marketplace operation error."""

    pass


@dataclass
class MarketplacePack:
    """A pack offered by a marketplace."""

    name: str
    path: str
    description: str = ""
    version: str = ""
    technology: str = ""
    license: str = ""
    checksum: str | None = None
    released_on: str = ""
    status: str = "missing"
    marketplace_id: str | None = None
    marketplace_name: str | None = None
    local_path: str | None = None
    installed_version: str | None = None


@dataclass
class Marketplace:
    """A configured marketplace source."""

    id: str
    name: str
    url: str
    is_official: bool = False
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Marketplace:
        url = str(data.get("url") or "")
        return cls(
            id=str(data.get("id") or derive_marketplace_id(url)),
            name=str(data.get("name") or derive_marketplace_name(url)),
            url=url,
            is_official=bool(data.get("isOfficial", False)),
            enabled=bool(data.get("enabled", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "isOfficial": self.is_official,
            "enabled": self.enabled,
        }


OFFICIAL_MARKETPLACE = Marketplace(
    id="official",
    name="ProjectHub Official",
    url=OFFICIAL_MARKETPLACE_URL,
    is_official=True,
)


# =============================================================================
# URL helpers
# =============================================================================


def resolve_marketplace_url(value: str) -> str:
    """Resolve user input to a marketplace URL.

    Accepts full http(s) and file URLs, or ``owner/repo`` shorthand for a
    GitHub repository's latest release.

    Raises:
        MarketplaceError: If the input matches none of these forms.
    """
    text = (value or "").strip()
    if text.startswith(("http://", "https://", "file://")):
        return text

    match = _SHORTHAND.match(text)
    if match:
        owner, repo = match.groups()
        return f"https://github.com/{owner}/{repo}/releases/latest"

    raise MarketplaceError(f'Invalid marketplace URL: "{value}". Use owner/repo or full URL.')


def derive_marketplace_id(url: str) -> str:
    """Stable identifier for a marketplace URL."""
    match = _GITHUB_REPO.search(url)
    if match:
        return f"{match.group(1)}-{match.group(2)}".lower()
    return f"custom-{sum(ord(ch) for ch in url)}"


def derive_marketplace_name(url: str) -> str:
    """Display name for a marketplace URL."""
    match = _GITHUB_REPO.search(url)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    if url.endswith(".json"):
        filename = url.rsplit("/", 1)[-1][: -len(".json")]
        return filename or "Custom"
    return "Custom"


def github_release_api_url(url: str) -> str:
    """Map a GitHub release page URL to its REST API endpoint.

    Other URLs are returned unchanged.
    """
    text = url.strip()
    match = _GITHUB_RELEASES.match(text)
    if not match:
        return text

    owner, repo, suffix = match.groups()
    if suffix and suffix.lower().startswith("tag/"):
        tag = suffix[len("tag/"):]
        return f"https://api.github.com/repos/{owner}/{repo}/releases/tags/{tag}"
    return f"https://api.github.com/repos/{owner}/{repo}/releases/latest"


def _normalize_pack_name(name: str | None) -> str:
    text = (name or "").strip()
    if text.lower().endswith(".zip"):
        text = text[:-4]
    return text.lower()


def merge_with_installed(
    remote: list[MarketplacePack], installed: list[PackInfo]
) -> list[MarketplacePack]:
    """Mark remote packs as installed or missing.

    A remote pack matches an installed pack by name (case-insensitive,
    ignoring a ``.zip`` suffix) or by its directory name.
    """
    merged: list[MarketplacePack] = []
    for pack in remote:
        key = _normalize_pack_name(pack.name)
        match = next(
            (
                info
                for info in installed
                if key in (_normalize_pack_name(info.name), _normalize_pack_name(info.directory_name))
            ),
            None,
        )
        row = MarketplacePack(**asdict(pack))
        row.status = "installed" if match else "missing"
        row.local_path = match.path if match else None
        row.installed_version = match.version if match else None
        merged.append(row)
    return merged


# =============================================================================
# Remote client
# =============================================================================


class MarketplaceClient:
    """Client for remote pack manifests.

    Usage:
        client = MarketplaceClient()
        packs = await client.fetch_pack_list("cbabil/projecthub-packs")
    """

    def __init__(self, fetcher: RemoteFetcher | None = None):
        self.fetcher = fetcher or RemoteFetcher()

    async def fetch_json(self, url: str) -> Any:
        """Fetch and decode a JSON document.

        ``file://`` URLs are read from disk.

        Raises:
            MarketplaceError: If the document cannot be fetched or decoded.
        """
        if url.startswith("file://"):
            path = Path(unquote(urlsplit(url).path))
            try:
                text = await asyncio.to_thread(path.read_text, encoding="utf-8")
                return json.loads(text)
            except (OSError, ValueError) as e:
                raise MarketplaceError(f"Cannot read manifest {path}: {e}")

        try:
            return await self.fetcher.get_json(url)
        except FetchError as e:
            raise MarketplaceError(str(e))

    async def fetch_pack_list(self, url: str | None = None) -> list[MarketplacePack]:
        """List the installable packs a marketplace offers.

        Args:
            url: Direct ``.json`` manifest URL, GitHub release page or API
                URL, or ``owner/repo`` shorthand. Defaults to the official
                marketplace.

        Raises:
            MarketplaceError: If the listing cannot be fetched or offers no
                installable packs.
        """
        target = resolve_marketplace_url(url) if url and url.strip() else OFFICIAL_MARKETPLACE_URL

        if target.lower().endswith(".json"):
            manifest = await self.fetch_json(target)
            packs = self._packs_from_manifest(manifest)
        else:
            release = await self.fetch_json(github_release_api_url(target))
            if not isinstance(release, dict):
                raise MarketplaceError("Unexpected release response")
            assets = {
                str(asset.get("name")): asset.get("browser_download_url")
                for asset in release.get("assets") or []
                if isinstance(asset, dict)
            }
            manifest_url = assets.get(MANIFEST_ASSET)
            if not manifest_url:
                raise MarketplaceError(f"{MANIFEST_ASSET} not found in release")
            manifest = await self.fetch_json(manifest_url)
            packs = self._packs_from_manifest(manifest, release, assets)

        if not packs:
            raise MarketplaceError("Manifest contains no installable packs")
        logger.info("Fetched %d pack(s) from %s", len(packs), target)
        return packs

    def _packs_from_manifest(
        self,
        manifest: Any,
        release: dict[str, Any] | None = None,
        assets: dict[str, str] | None = None,
    ) -> list[MarketplacePack]:
        if not isinstance(manifest, dict):
            raise MarketplaceError("Manifest must be a JSON object")

        manifest_version = manifest.get("version")
        release = release or {}
        released_on = (
            release.get("published_at")
            or release.get("created_at")
            or (datetime.now(timezone.utc).isoformat() if assets is not None else "")
        )
        license_info = release.get("license")
        release_license = license_info.get("spdx_id") if isinstance(license_info, dict) else None
        entries = manifest.get("packs")
        if not isinstance(entries, list):
            entries = []

        packs: list[MarketplacePack] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            path = str(entry.get("zip") or "")
            if assets is not None:
                # Release manifests name assets; skip entries without one
                path = str(assets.get(path) or "")
            if not path.lower().endswith(".zip"):
                continue

            packs.append(
                MarketplacePack(
                    name=str(entry.get("name") or "-"),
                    path=path,
                    description=str(entry.get("description") or "-"),
                    version=str(
                        entry.get("version") or release.get("tag_name") or manifest_version or "-"
                    ),
                    technology=str(entry.get("technology") or "-"),
                    license=str(entry.get("license") or release_license or "-"),
                    checksum=str(entry.get("checksum")) if entry.get("checksum") else None,
                    released_on=str(released_on or manifest_version or ""),
                )
            )
        return packs

    async def fetch_all(
        self, marketplaces: list[Marketplace]
    ) -> tuple[list[MarketplacePack], dict[str, str]]:
        """Fetch every enabled marketplace concurrently.

        Returns:
            Packs tagged with their marketplace, and error messages keyed by
            marketplace id.
        """
        enabled = [m for m in marketplaces if m.enabled]
        results = await asyncio.gather(
            *(self.fetch_pack_list(m.url) for m in enabled), return_exceptions=True
        )

        packs: list[MarketplacePack] = []
        errors: dict[str, str] = {}
        for marketplace, result in zip(enabled, results):
            if isinstance(result, MarketplaceError):
                message = str(result) or "Failed to fetch"
                if "403" in message or "429" in message:
                    message = "GitHub rate limit."
                errors[marketplace.id] = message
                continue
            if isinstance(result, BaseException):
                raise result
            for pack in result:
                pack.marketplace_id = marketplace.id
                pack.marketplace_name = marketplace.name
                packs.append(pack)
        return packs, errors


# =============================================================================
# Local registry of marketplace sources
# =============================================================================


class MarketplaceRegistry:
    """Marketplace sources persisted in ``<marketplace_dir>/metadata.yml``.

    The official marketplace is always present and cannot be removed.
    """

    def __init__(self, marketplace_dir: Path):
        self.marketplace_dir = Path(marketplace_dir)
        self.registry_path = self.marketplace_dir / REGISTRY_FILE

    def _save(self, marketplaces: list[Marketplace]) -> None:
        self.marketplace_dir.mkdir(parents=True, exist_ok=True)
        data = {"version": 1, "marketplaces": [m.to_dict() for m in marketplaces]}
        with open(self.registry_path, "w", encoding="utf-8") as f:
            f.write("# ProjectHub Marketplace Sources\n")
            f.write("# Add custom marketplaces using owner/repo or full URLs\n\n")
            yaml.safe_dump(data, f, sort_keys=False)

    def load(self) -> list[Marketplace]:
        """Load marketplaces, recreating the file with defaults if unusable."""
        if not self.registry_path.exists():
            self._save([OFFICIAL_MARKETPLACE])
            return [OFFICIAL_MARKETPLACE]

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            raw = data.get("marketplaces") or []
            marketplaces = [Marketplace.from_dict(item) for item in raw if isinstance(item, dict)]
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning("Failed to load marketplace metadata, recreating: %s", e)
            self._save([OFFICIAL_MARKETPLACE])
            return [OFFICIAL_MARKETPLACE]

        return self._with_official(marketplaces)

    def save(self, marketplaces: list[Marketplace]) -> list[Marketplace]:
        """Persist ``marketplaces`` (the official entry is re-added if missing)."""
        to_save = self._with_official(marketplaces)
        self._save(to_save)
        return to_save

    def add(self, value: str) -> Marketplace:
        """Add a marketplace from a URL or ``owner/repo`` shorthand.

        Raises:
            MarketplaceError: If the input is invalid or already registered.
        """
        url = resolve_marketplace_url(value)
        marketplaces = self.load()
        if any(m.url == url for m in marketplaces):
            raise MarketplaceError("This marketplace is already added.")

        marketplace = Marketplace(
            id=derive_marketplace_id(url),
            name=derive_marketplace_name(url),
            url=url,
        )
        self.save([*marketplaces, marketplace])
        return marketplace

    def remove(self, marketplace_id: str) -> bool:
        """Remove a marketplace by id.

        Returns:
            True if removed, False if not found.

        Raises:
            MarketplaceError: When asked to remove the official marketplace.
        """
        marketplaces = self.load()
        match = next((m for m in marketplaces if m.id == marketplace_id), None)
        if match is None:
            return False
        if match.is_official:
            raise MarketplaceError("The official marketplace cannot be removed.")
        self.save([m for m in marketplaces if m.id != marketplace_id])
        return True

    @staticmethod
    def _with_official(marketplaces: list[Marketplace]) -> list[Marketplace]:
        if any(m.is_official for m in marketplaces):
            return list(marketplaces)
        return [OFFICIAL_MARKETPLACE, *marketplaces]
