"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli.projecthub.cli import app
from tests.conftest import REACT_INDEX
from tests.helpers import write_pack

runner = CliRunner()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "hub"
    monkeypatch.setenv("PROJECTHUB_HOME", str(root))
    monkeypatch.delenv("PROJECTHUB_CONFIG", raising=False)
    monkeypatch.delenv("PROJECTHUB_PACKS_DIR", raising=False)
    monkeypatch.delenv("PROJECTHUB_PROJECTS_DIR", raising=False)
    monkeypatch.setenv("COLUMNS", "200")
    write_pack(
        root / "packs",
        "demo",
        manifest={
            "version": "2.1.0",
            "category": "frontend",
            "contents": [
                {
                    "path": "templates/react-app",
                    "files": [{"source": "src/index.ts", "target": "index.ts"}],
                },
                {"path": "templates/locked", "editable": False},
            ],
        },
        templates={"react-app": {"src/index.ts": REACT_INDEX}, "locked": {"x.txt": "x"}},
    )
    return root


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "ProjectHub v1.0.0" in result.output


class TestTemplates:
    def test_list(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "list"])

        assert result.exit_code == 0, result.output
        assert "demo-react-app" in result.output

    def test_list_filtered_by_category(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "list", "--category", "backend"])

        assert result.exit_code == 0
        assert "No templates found" in result.output

    def test_show(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "show", "react-app"])

        assert result.exit_code == 0
        assert "demo/templates/react-app" in result.output
        assert "src/index.ts" in result.output

    def test_show_unknown(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "show", "ghost"])

        assert result.exit_code == 1
        assert "Template not found: ghost" in result.output

    def test_delete_refuses_locked(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "delete", "demo-locked", "--yes"])

        assert result.exit_code == 1
        assert (home / "packs" / "demo" / "templates" / "locked").exists()

    def test_delete(self, home: Path) -> None:
        result = runner.invoke(app, ["templates", "delete", "demo-react-app", "--yes"])

        assert result.exit_code == 0, result.output
        assert not (home / "packs" / "demo" / "templates" / "react-app").exists()


class TestPacks:
    def test_list(self, home: Path) -> None:
        result = runner.invoke(app, ["packs", "list"])

        assert result.exit_code == 0
        assert "demo" in result.output
        assert "2.1.0" in result.output

    def test_remove_declined(self, home: Path) -> None:
        result = runner.invoke(app, ["packs", "remove", "demo"], input="n\n")

        assert result.exit_code == 1
        assert "Cancelled" in result.output
        assert (home / "packs" / "demo").exists()

    def test_remove(self, home: Path) -> None:
        result = runner.invoke(app, ["packs", "remove", "demo", "--yes"])

        assert result.exit_code == 0, result.output
        assert not (home / "packs" / "demo").exists()

    def test_remove_unknown(self, home: Path) -> None:
        result = runner.invoke(app, ["packs", "remove", "ghost", "--yes"])

        assert result.exit_code == 1
        assert "Pack not found: ghost" in result.output


class TestProjects:
    def test_create_and_list(self, home: Path, tmp_path: Path) -> None:
        out = tmp_path / "app"

        created = runner.invoke(
            app,
            ["projects", "create", "My App", "-d", str(out), "-t", "demo-react-app", "--skip-all"],
        )
        listed = runner.invoke(app, ["projects", "list"])

        assert created.exit_code == 0, created.output
        assert (out / "index.ts").read_bytes() == REACT_INDEX
        assert "my_app/metadata.yaml" in created.output
        assert "My App" in listed.output

    def test_create_requires_template(self, home: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["projects", "create", "x", "-d", str(tmp_path / "x")])

        assert result.exit_code == 1
        assert "--template" in result.output

    def test_conflict_cancel(self, home: Path, tmp_path: Path) -> None:
        out = tmp_path / "app"
        out.mkdir()
        (out / "index.ts").write_text("mine")

        result = runner.invoke(
            app,
            ["projects", "create", "My App", "-d", str(out), "-t", "demo-react-app"],
            input="cancel\n",
        )

        assert result.exit_code == 1
        assert "Cancelled" in result.output
        assert (out / "index.ts").read_text() == "mine"
        assert not (home / "projects" / "my_app").exists()


class TestMarketplace:
    def test_add_list_remove(self, home: Path) -> None:
        added = runner.invoke(app, ["marketplace", "add", "acme/packs"])
        listed = runner.invoke(app, ["marketplace", "list"])
        removed = runner.invoke(app, ["marketplace", "remove", "acme-packs"])
        official = runner.invoke(app, ["marketplace", "remove", "official"])

        assert added.exit_code == 0, added.output
        assert "acme-packs" in listed.output
        assert removed.exit_code == 0
        assert official.exit_code == 1


def test_cache_clear(home: Path) -> None:
    result = runner.invoke(app, ["cache", "clear"])

    assert result.exit_code == 0
    assert "Cache cleared" in result.output
