"""Tests for configuration loading."""

from pathlib import Path

import pytest

from hub.config import DEFAULT_ROOT_DIR, Config, ensure_roots, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PROJECTHUB_HOME",
        "PROJECTHUB_CONFIG",
        "PROJECTHUB_PACKS_DIR",
        "PROJECTHUB_PROJECTS_DIR",
        "PROJECTHUB_TIMEOUT",
        "PROJECTHUB_TRACE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = Config()

    assert config.paths.root == DEFAULT_ROOT_DIR
    assert config.paths.packs == DEFAULT_ROOT_DIR / "packs"
    assert config.paths.projects == DEFAULT_ROOT_DIR / "projects"
    assert config.network.max_redirects == 5
    assert config.network.timeout == 60.0
    assert config.logging.level == "INFO"


def test_home_and_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.toml").write_text(
        '[network]\ntimeout = 5\nmax_redirects = 2\n\n[logging]\nlevel = "WARNING"\n'
    )
    monkeypatch.setenv("PROJECTHUB_HOME", str(tmp_path))

    config = load_config()

    assert config.paths.root == tmp_path
    assert config.paths.packs == tmp_path / "packs"
    assert config.paths.marketplace == tmp_path / "marketplace"
    assert config.network.timeout == 5
    assert config.network.max_redirects == 2
    assert config.logging.level == "WARNING"


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "custom.toml"
    config_file.write_text('[paths]\npacks_dir = "/from/file"\n\n[network]\ntimeout = 5\n')
    monkeypatch.setenv("PROJECTHUB_PACKS_DIR", str(tmp_path / "env-packs"))
    monkeypatch.setenv("PROJECTHUB_TIMEOUT", "12.5")
    monkeypatch.setenv("PROJECTHUB_TRACE", "debug")

    config = load_config(config_file)

    assert config.paths.packs == tmp_path / "env-packs"
    assert config.network.timeout == 12.5
    assert config.logging.level == "DEBUG"


def test_invalid_environment_values_are_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROJECTHUB_HOME", str(tmp_path))
    monkeypatch.setenv("PROJECTHUB_TIMEOUT", "soon")
    monkeypatch.setenv("PROJECTHUB_TRACE", "chatty")

    config = load_config()

    assert config.network.timeout == 60.0
    assert config.logging.level == "INFO"


def test_ensure_roots(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECTHUB_HOME", str(tmp_path / "hub"))

    config = load_config()
    ensure_roots(config)

    assert (tmp_path / "hub" / "packs").is_dir()
    assert (tmp_path / "hub" / "projects").is_dir()
