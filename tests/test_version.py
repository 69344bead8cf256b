from __future__ import annotations

from importlib import metadata

from infra import version as version_mod


def test_get_app_version_prefers_env_override(monkeypatch):
    monkeypatch.setenv("CVR_APP_VERSION", "9.9.9")

    assert version_mod.get_app_version() == "9.9.9"


def test_get_app_version_reads_installed_distribution(monkeypatch):
    monkeypatch.delenv("CVR_APP_VERSION", raising=False)
    monkeypatch.setattr(version_mod.metadata, "version", lambda name: "2.1.1")

    assert version_mod.get_app_version() == "2.1.1"


def test_get_app_version_falls_back_when_not_installed(monkeypatch):
    monkeypatch.delenv("CVR_APP_VERSION", raising=False)

    def _missing(name):
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(version_mod.metadata, "version", _missing)

    assert version_mod.get_app_version() == version_mod._DEFAULT_APP_VERSION
