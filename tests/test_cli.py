# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI behaviour exercised through Typer's runner."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from click.testing import Result
from typer.testing import CliRunner

from depcache.cli import app
from depcache.cli import context as cli_context
from depcache.registry import DirectoryRegistry
from tests.helpers.builders import FakeBuilder
from tests.helpers.digests import framed_digest

HASH_A = framed_digest(("requirements.txt", b"a"))
NOW = "2025-11-14T09:00:00"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("DEPCACHE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def store(tmp_path: Path) -> Path:
    """Return the directory backing the test registry."""
    return tmp_path / "registry"


@pytest.fixture
def fake_builder(monkeypatch: pytest.MonkeyPatch) -> FakeBuilder:
    builder = FakeBuilder()
    monkeypatch.setattr(cli_context, "build_delegate", lambda _config: builder)
    return builder


def _invoke(project: Path, store: Path, *args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(
        app,
        ["--root", str(project), "--registry", f"directory:{store}", "--now", NOW, "--no-emoji", *args],
    )


def test_fingerprint_reports_digest_and_members(project: Path, store: Path) -> None:
    result = _invoke(project, store, "--json", "fingerprint")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["fingerprint"] == HASH_A
    assert payload["members"] == [str(project.resolve() / "requirements.txt")]
    assert str(project.resolve() / "poetry.lock") in payload["missing"]


def test_keys_prints_every_tier(project: Path, store: Path) -> None:
    result = _invoke(project, store, "--image-prefix", "ghcr.io/acme", "keys")

    assert result.exit_code == 0, result.output
    assert "bucket: 2025-11" in result.stdout
    assert "base: ghcr.io/acme/base-deps:2025-11" in result.stdout
    assert "base_alias: ghcr.io/acme/base-deps:latest" in result.stdout
    assert f"incremental: ghcr.io/acme/deps:{HASH_A}-2025-11" in result.stdout


def test_resolve_against_empty_registry(project: Path, store: Path) -> None:
    result = _invoke(project, store, "--json", "resolve")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["verdict"] == "build-from-scratch"
    assert payload["base_missing"] is True
    assert payload["incremental_key"] == f"deps:{HASH_A}-2025-11"


def test_build_publishes_then_resolve_reuses(project: Path, store: Path, fake_builder: FakeBuilder) -> None:
    built = _invoke(project, store, "build")
    resolved = _invoke(project, store, "--json", "resolve")

    assert built.exit_code == 0, built.output
    assert f"Built and published deps:{HASH_A}-2025-11" in built.stdout
    assert len(fake_builder.calls) == 1
    assert DirectoryRegistry(store).list_tags() == [f"deps:{HASH_A}-2025-11"]
    assert json.loads(resolved.stdout)["verdict"] == "reuse-incremental"


def test_build_dry_run_does_not_build(project: Path, store: Path, fake_builder: FakeBuilder) -> None:
    result = _invoke(project, store, "build", "--dry-run")

    assert result.exit_code == 0, result.output
    assert "from scratch" in result.stdout
    assert fake_builder.calls == []
    assert DirectoryRegistry(store).list_tags() == []


def test_build_failure_exits_with_build_status(project: Path, store: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_context, "build_delegate", lambda _config: FakeBuilder(fail=True))

    result = _invoke(project, store, "build")

    assert result.exit_code == 1
    assert "apt-get install failed" in result.stderr
    assert "E: Unable to locate package" in result.stderr
    assert DirectoryRegistry(store).list_tags() == []


def test_json_build_failure_keeps_stdout_clean(project: Path, store: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_context, "build_delegate", lambda _config: FakeBuilder(fail=True))

    result = _invoke(project, store, "--json", "build")

    assert result.exit_code == 1
    assert result.stdout == ""
    assert "apt-get install failed" in result.stderr


def test_json_config_error_keeps_stdout_clean(project: Path, store: Path) -> None:
    (project / ".depcache.toml").write_text("base-retention-periods = 0\n", encoding="utf-8")

    result = _invoke(project, store, "--json", "keys")

    assert result.exit_code == 2
    assert result.stdout == ""
    assert "base_retention_periods" in result.stderr


def test_build_base_then_build_on_it(project: Path, store: Path, fake_builder: FakeBuilder) -> None:
    base = _invoke(project, store, "build-base")
    build = _invoke(project, store, "--json", "build")

    assert base.exit_code == 0, base.output
    assert build.exit_code == 0, build.output
    payload = json.loads(build.stdout)
    assert payload["verdict"] == "build-on-base"
    assert payload["parent_ref"] == "base-deps:2025-11"
    assert payload["outcome"]["published"] is True
    assert fake_builder.calls[1][0] == "base-deps:2025-11"


def test_no_base_builds_from_scratch(project: Path, store: Path) -> None:
    DirectoryRegistry(store).push("base-deps:2025-11", "base")

    result = _invoke(project, store, "--no-base", "--json", "resolve")

    payload = json.loads(result.stdout)
    assert payload["verdict"] == "build-from-scratch"
    assert payload["base_missing"] is False


def test_prune_dry_run_lists_candidates(project: Path, store: Path) -> None:
    registry = DirectoryRegistry(store)
    for tag in ("base-deps:2025-07", "base-deps:2025-11", "base-deps:latest", f"deps:{HASH_A}-2025-10"):
        registry.push(tag, tag)

    result = _invoke(project, store, "prune", "--dry-run")

    assert result.exit_code == 0, result.output
    assert "DRY RUN: would delete base-deps:2025-07" in result.stdout
    assert f"DRY RUN: would delete deps:{HASH_A}-2025-10" in result.stdout
    assert len(registry.list_tags()) == 4


def test_prune_deletes_expired_tags(project: Path, store: Path) -> None:
    registry = DirectoryRegistry(store)
    for tag in ("base-deps:2025-07", "base-deps:2025-11", "base-deps:latest"):
        registry.push(tag, tag)

    result = _invoke(project, store, "--json", "prune")

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["deleted"] == ["base-deps:2025-07"]
    assert registry.list_tags() == ["base-deps:2025-11", "base-deps:latest"]


def test_project_config_file_is_honoured(project: Path, store: Path) -> None:
    (project / ".depcache.toml").write_text(
        'time-bucket-format = "weekly"\nbase-retention-periods = 5\n',
        encoding="utf-8",
    )

    keys = _invoke(project, store, "--json", "keys")
    shown = _invoke(project, store, "--json", "config")
    table = _invoke(project, store, "config")

    assert json.loads(keys.stdout)["bucket"] == "2025-W46"
    assert json.loads(shown.stdout)["base_retention_periods"] == 5
    assert table.exit_code == 0, table.output
    assert "depcache configuration" in table.stdout


def test_invalid_config_exits_with_config_status(project: Path, store: Path) -> None:
    (project / ".depcache.toml").write_text("base-retention-periods = 0\n", encoding="utf-8")

    result = _invoke(project, store, "keys")

    assert result.exit_code == 2
    assert "base_retention_periods" in result.stderr


def test_invalid_now_exits_with_config_status(project: Path, store: Path) -> None:
    result = CliRunner().invoke(app, ["--root", str(project), "--now", "yesterday", "keys"])

    assert result.exit_code == 2


def test_unknown_registry_exits_with_config_status(project: Path) -> None:
    result = CliRunner().invoke(app, ["--root", str(project), "--registry", "s3://bucket", "--now", NOW, "resolve"])

    assert result.exit_code == 2


def test_unreadable_input_exits_with_io_status(project: Path, store: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(*_args: object, **_kwargs: object) -> None:
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "open", _broken)

    result = _invoke(project, store, "fingerprint")

    assert result.exit_code == 4


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("build", "build-base", "config", "fingerprint", "keys", "prune", "resolve"):
        assert command in result.output


def test_help_sorts_global_options() -> None:
    output = CliRunner().invoke(app, ["--help"]).output

    positions = [output.index(flag) for flag in ("--config", "--debug", "--format", "--json", "--registry", "--root")]
    assert positions == sorted(positions)
    assert output.index("--timeout") < output.index("--help")
