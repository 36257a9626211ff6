# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and layered loading."""

from __future__ import annotations

from ..errors import ConfigError
from .loader import ConfigLoader, ConfigLoadResult, FieldUpdate, apply_overrides, load_config
from .models import DepCacheConfig

__all__ = [
    "ConfigError",
    "ConfigLoadResult",
    "ConfigLoader",
    "DepCacheConfig",
    "FieldUpdate",
    "apply_overrides",
    "load_config",
]
