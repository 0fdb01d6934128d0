"""Tests for archive listing and extraction."""

from pathlib import Path

import pytest

from packs.archive import ArchiveError, EmptyArchiveError, extract_archive, list_entries
from tests.helpers import make_zip


def write_zip(path: Path, files: dict[str, str | bytes]) -> Path:
    path.write_bytes(make_zip(files))
    return path


class TestExtractArchive:
    def test_layout_is_preserved(self, tmp_path: Path) -> None:
        archive = write_zip(
            tmp_path / "demo.zip",
            {
                "metadata.yaml": "name: demo\n",
                "templates/app/index.ts": b"\x00binary\r\n",
            },
        )
        target = tmp_path / "out"

        count = extract_archive(archive, target)

        assert count == 2
        assert (target / "metadata.yaml").read_text() == "name: demo\n"
        assert (target / "templates" / "app" / "index.ts").read_bytes() == b"\x00binary\r\n"

    def test_empty_archive(self, tmp_path: Path) -> None:
        archive = write_zip(tmp_path / "empty.zip", {})

        assert list_entries(archive) == []
        with pytest.raises(EmptyArchiveError):
            extract_archive(archive, tmp_path / "out")

    def test_escaping_entry_is_rejected(self, tmp_path: Path) -> None:
        archive = write_zip(tmp_path / "evil.zip", {"ok.txt": "ok", "../evil.txt": "evil"})
        target = tmp_path / "nested" / "out"

        with pytest.raises(ArchiveError, match="Unsafe"):
            extract_archive(archive, target)

        assert not (tmp_path / "nested" / "evil.txt").exists()
        assert not (target / "ok.txt").exists()

    def test_not_a_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "bogus.zip"
        archive.write_text("<html>not found</html>")

        with pytest.raises(ArchiveError):
            list_entries(archive)
        with pytest.raises(ArchiveError):
            extract_archive(archive, tmp_path / "out")
