"""Tests for marketplace listings and the marketplace registry."""

from pathlib import Path

import httpx
import pytest
import yaml

from packs.fetcher import RemoteFetcher
from packs.manifest import PackInfo
from packs.marketplace import (
    OFFICIAL_MARKETPLACE,
    Marketplace,
    MarketplaceClient,
    MarketplaceError,
    MarketplacePack,
    MarketplaceRegistry,
    derive_marketplace_id,
    derive_marketplace_name,
    github_release_api_url,
    merge_with_installed,
    resolve_marketplace_url,
)
from tests.helpers import serve

MANIFEST = {
    "version": "2024.1",
    "packs": [
        {
            "name": "web-starter",
            "zip": "web-starter.zip",
            "description": "Web starter",
            "version": "1.2.0",
            "checksum": "sha256:abc",
        },
        {"name": "notes", "zip": "notes.txt"},
        {"name": "unpublished", "zip": "unpublished.zip"},
    ],
}

RELEASE = {
    "tag_name": "v3",
    "published_at": "2024-05-01T00:00:00Z",
    "license": {"spdx_id": "MIT"},
    "assets": [
        {
            "name": "packs-manifest.json",
            "browser_download_url": "https://example.com/assets/packs-manifest.json",
        },
        {
            "name": "web-starter.zip",
            "browser_download_url": "https://example.com/assets/web-starter.zip",
        },
    ],
}


def client(routes: dict[str, httpx.Response]) -> MarketplaceClient:
    return MarketplaceClient(RemoteFetcher(transport=serve(routes)))


class TestUrlHelpers:
    def test_resolve(self) -> None:
        assert resolve_marketplace_url("acme/packs") == "https://github.com/acme/packs/releases/latest"
        assert resolve_marketplace_url(" https://x.test/m.json ") == "https://x.test/m.json"
        with pytest.raises(MarketplaceError):
            resolve_marketplace_url("not a url")

    def test_ids_and_names(self) -> None:
        github = "https://github.com/Acme/Packs/releases/latest"

        assert derive_marketplace_id(github) == "acme-packs"
        assert derive_marketplace_name(github) == "Acme/Packs"
        assert derive_marketplace_name("https://x.test/team-packs.json") == "team-packs"
        assert derive_marketplace_name("https://x.test/feed") == "Custom"
        assert derive_marketplace_id("ab") == f"custom-{ord('a') + ord('b')}"

    def test_release_api_url(self) -> None:
        assert (
            github_release_api_url("https://github.com/acme/packs/releases/latest")
            == "https://api.github.com/repos/acme/packs/releases/latest"
        )
        assert (
            github_release_api_url("https://github.com/acme/packs/releases/tag/v1")
            == "https://api.github.com/repos/acme/packs/releases/tags/v1"
        )
        assert github_release_api_url("https://x.test/feed") == "https://x.test/feed"


class TestFetchPackList:
    @pytest.mark.asyncio
    async def test_direct_manifest(self) -> None:
        routes = {"/packs-manifest.json": httpx.Response(200, json=MANIFEST)}

        packs = await client(routes).fetch_pack_list("https://example.com/packs-manifest.json")

        assert [p.name for p in packs] == ["web-starter", "unpublished"]
        starter = packs[0]
        assert starter.path == "web-starter.zip"
        assert starter.version == "1.2.0"
        assert starter.checksum == "sha256:abc"
        assert starter.technology == "-"
        assert packs[1].version == "2024.1"

    @pytest.mark.asyncio
    async def test_release_assets(self) -> None:
        routes = {
            "/repos/acme/packs/releases/latest": httpx.Response(200, json=RELEASE),
            "/assets/packs-manifest.json": httpx.Response(200, json=MANIFEST),
        }

        packs = await client(routes).fetch_pack_list("acme/packs")

        # Only entries published as release assets are offered
        assert len(packs) == 1
        pack = packs[0]
        assert pack.path == "https://example.com/assets/web-starter.zip"
        assert pack.license == "MIT"
        assert pack.released_on == "2024-05-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_non_string_fields_are_coerced(self) -> None:
        manifest = {
            "version": 3,
            "packs": [
                {
                    "name": 5,
                    "zip": "five.zip",
                    "description": ["odd"],
                    "technology": 1.5,
                    "checksum": 1234,
                }
            ],
        }
        routes = {"/m.json": httpx.Response(200, json=manifest)}

        packs = await client(routes).fetch_pack_list("https://example.com/m.json")
        merged = merge_with_installed(packs, [PackInfo(name="5", path="/packs/five")])

        pack = packs[0]
        assert pack.name == "5"
        assert pack.description == "['odd']"
        assert pack.technology == "1.5"
        assert pack.checksum == "1234"
        assert pack.version == "3"
        assert merged[0].status == "installed"

    @pytest.mark.asyncio
    async def test_malformed_pack_list_offers_nothing(self) -> None:
        routes = {"/m.json": httpx.Response(200, json={"packs": 7})}

        with pytest.raises(MarketplaceError, match="no installable"):
            await client(routes).fetch_pack_list("https://example.com/m.json")

    @pytest.mark.asyncio
    async def test_release_without_manifest_asset(self) -> None:
        release = dict(RELEASE, assets=[])
        routes = {"/repos/acme/packs/releases/latest": httpx.Response(200, json=release)}

        with pytest.raises(MarketplaceError, match="packs-manifest.json"):
            await client(routes).fetch_pack_list("acme/packs")

    @pytest.mark.asyncio
    async def test_no_installable_packs(self) -> None:
        routes = {"/m.json": httpx.Response(200, json={"packs": [{"name": "x", "zip": "x.tar"}]})}

        with pytest.raises(MarketplaceError, match="no installable"):
            await client(routes).fetch_pack_list("https://example.com/m.json")

    @pytest.mark.asyncio
    async def test_file_url(self, tmp_path: Path) -> None:
        manifest = tmp_path / "packs.json"
        manifest.write_text('{"packs": [{"name": "local", "zip": "/srv/local.zip"}]}')

        packs = await client({}).fetch_pack_list(manifest.as_uri())

        assert [p.name for p in packs] == ["local"]

    @pytest.mark.asyncio
    async def test_fetch_all_reports_errors_per_marketplace(self) -> None:
        routes = {
            "/good.json": httpx.Response(200, json=MANIFEST),
            "/limited.json": httpx.Response(403),
        }
        good = Marketplace(id="good", name="Good", url="https://example.com/good.json")
        limited = Marketplace(id="limited", name="Limited", url="https://example.com/limited.json")
        disabled = Marketplace(
            id="off", name="Off", url="https://example.com/off.json", enabled=False
        )

        packs, errors = await client(routes).fetch_all([good, limited, disabled])

        assert {p.marketplace_id for p in packs} == {"good"}
        assert errors == {"limited": "GitHub rate limit."}


def test_merge_with_installed() -> None:
    remote = [
        MarketplacePack(name="Web-Starter.zip", path="a.zip"),
        MarketplacePack(name="other", path="b.zip"),
    ]
    installed = [PackInfo(name="web-starter", path="/packs/web-starter", version="1.0.0")]

    merged = merge_with_installed(remote, installed)

    assert [p.status for p in merged] == ["installed", "missing"]
    assert merged[0].local_path == "/packs/web-starter"
    assert merged[0].installed_version == "1.0.0"
    # Inputs are left untouched
    assert remote[0].status == "missing"


class TestRegistry:
    def test_load_creates_official_entry(self, tmp_path: Path) -> None:
        registry = MarketplaceRegistry(tmp_path / "marketplace")

        assert registry.load() == [OFFICIAL_MARKETPLACE]
        assert registry.registry_path.exists()

    def test_add_and_remove(self, tmp_path: Path) -> None:
        registry = MarketplaceRegistry(tmp_path)

        added = registry.add("acme/packs")
        reloaded = MarketplaceRegistry(tmp_path).load()

        assert added.id == "acme-packs"
        assert [m.id for m in reloaded] == ["official", "acme-packs"]
        with pytest.raises(MarketplaceError, match="already added"):
            registry.add("acme/packs")

        assert registry.remove("acme-packs") is True
        assert registry.remove("acme-packs") is False
        assert [m.id for m in registry.load()] == ["official"]

    def test_official_cannot_be_removed(self, tmp_path: Path) -> None:
        registry = MarketplaceRegistry(tmp_path)

        with pytest.raises(MarketplaceError):
            registry.remove("official")

    def test_corrupt_file_is_recreated(self, tmp_path: Path) -> None:
        registry = MarketplaceRegistry(tmp_path)
        registry.registry_path.write_text("marketplaces: [unclosed")

        assert registry.load() == [OFFICIAL_MARKETPLACE]
        data = yaml.safe_load(registry.registry_path.read_text())
        assert data["marketplaces"][0]["isOfficial"] is True
