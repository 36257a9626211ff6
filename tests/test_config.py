# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests covering layered configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from depcache.config import ConfigError, ConfigLoader, DepCacheConfig, apply_overrides, load_config


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults(tmp_path: Path) -> None:
    config = ConfigLoader.for_root(tmp_path, env={}).load()

    assert config.use_base_image is True
    assert config.time_bucket_format == "monthly"
    assert config.base_retention_periods == 3
    assert config.extra_dependency_files == []
    assert config.stale_base_policy == "proceed"
    assert config.registry == "docker"


def test_sources_layer_in_precedence_order(tmp_path: Path) -> None:
    _write(
        tmp_path / "pyproject.toml",
        '[tool.depcache]\ntime-bucket-format = "weekly"\nbase-retention-periods = 6\nregistry = "memory"\n',
    )
    _write(tmp_path / ".depcache.toml", 'time-bucket-format = "quarterly"\nuse-base-image = false\n')

    result = ConfigLoader.for_root(tmp_path, env={"DEPCACHE_BASE_RETENTION_PERIODS": "2"}).load_with_trace()

    assert result.config.registry == "memory"
    assert result.config.time_bucket_format == "quarterly"
    assert result.config.use_base_image is False
    assert result.config.base_retention_periods == 2
    assert result.source_of("registry") == str(tmp_path.resolve() / "pyproject.toml")
    assert result.source_of("time_bucket_format") == str(tmp_path.resolve() / ".depcache.toml")
    assert result.source_of("base_retention_periods") == "environment"
    assert result.source_of("dockerfile") == "defaults"


def test_environment_lists_are_comma_separated(tmp_path: Path) -> None:
    env = {"DEPCACHE_EXTRA_DEPENDENCY_FILES": "apt.txt, tools/versions.env", "DEPCACHE_UNRELATED": "x"}

    config = ConfigLoader.for_root(tmp_path, env=env).load()

    assert config.extra_dependency_files == [Path("apt.txt"), Path("tools/versions.env")]


def test_environment_variables_expand_in_files(tmp_path: Path) -> None:
    _write(tmp_path / ".depcache.toml", 'image-prefix = "${REGISTRY_HOST}/acme"\n')

    config = ConfigLoader.for_root(tmp_path, env={"REGISTRY_HOST": "ghcr.io"}).load()

    assert config.image_prefix == "ghcr.io/acme/"


def test_explicit_config_file_replaces_project_file(tmp_path: Path) -> None:
    _write(tmp_path / ".depcache.toml", 'time-bucket-format = "weekly"\n')
    custom = _write(tmp_path / "ci.toml", 'time-bucket-format = "daily"\n')

    config = ConfigLoader.for_root(tmp_path, config_file=custom, env={}).load()

    assert config.time_bucket_format == "daily"


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    _write(tmp_path / ".depcache.toml", "retention = 3\n")

    with pytest.raises(ConfigError, match="retention"):
        ConfigLoader.for_root(tmp_path, env={}).load()


def test_invalid_toml_is_a_config_error(tmp_path: Path) -> None:
    _write(tmp_path / ".depcache.toml", "use-base-image = \n")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        ConfigLoader.for_root(tmp_path, env={}).load()


@pytest.mark.parametrize(
    "fields",
    [
        {"time_bucket_format": "fortnightly"},
        {"base_retention_periods": 0},
        {"stale_base_policy": "ignore"},
        {"timeout": -1},
    ],
)
def test_model_validation(fields: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        DepCacheConfig.model_validate(fields)


def test_apply_overrides_skips_unset_values() -> None:
    config = DepCacheConfig()

    updated = apply_overrides(config, {"registry": "memory", "timeout": None, "image_prefix": "quay.io/acme"})

    assert updated.registry == "memory"
    assert updated.timeout is None
    assert updated.image_prefix == "quay.io/acme/"
    assert apply_overrides(config, {"registry": None}) is config


def test_apply_overrides_validates() -> None:
    with pytest.raises(ConfigError, match="command line"):
        apply_overrides(DepCacheConfig(), {"time_bucket_format": "hourly"})


def test_load_config_reads_process_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPCACHE_STALE_BASE_POLICY", "fail")
    monkeypatch.setenv("DEPCACHE_TIMEOUT", "")

    config = load_config(tmp_path)

    assert config.stale_base_policy == "fail"
    assert config.timeout is None
