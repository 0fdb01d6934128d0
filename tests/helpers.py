"""Builders for pack trees and archives used across the test suite."""

import io
import zipfile
from pathlib import Path
from typing import Any

import httpx
import yaml


def write_pack(
    root: Path,
    name: str,
    manifest: dict[str, Any] | str | None = None,
    templates: dict[str, dict[str, str | bytes]] | None = None,
    libraries: dict[str, dict[str, str | bytes]] | None = None,
) -> Path:
    """Create ``root/name`` with an optional manifest and entry files."""
    pack = root / name
    pack.mkdir(parents=True, exist_ok=True)
    if manifest is not None:
        text = manifest if isinstance(manifest, str) else yaml.safe_dump(manifest)
        (pack / "metadata.yaml").write_text(text, encoding="utf-8")

    for section, entries in (("templates", templates or {}), ("libraries", libraries or {})):
        for entry, files in entries.items():
            entry_dir = pack / section / entry
            entry_dir.mkdir(parents=True, exist_ok=True)
            for relative, content in files.items():
                path = entry_dir / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                data = content if isinstance(content, bytes) else content.encode("utf-8")
                path.write_bytes(data)
    return pack


def make_zip(files: dict[str, str | bytes]) -> bytes:
    """Build an in-memory zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def serve(routes: dict[str, httpx.Response]) -> httpx.MockTransport:
    """Mock transport answering GETs by URL path (404 otherwise)."""

    def handler(request: httpx.Request) -> httpx.Response:
        response = routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, text="not found")
        # Fresh copy so a route can be served more than once
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    return httpx.MockTransport(handler)
