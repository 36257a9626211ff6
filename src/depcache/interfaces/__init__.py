# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Protocols describing the external collaborators of the cache core."""

from __future__ import annotations

from .build import BuildContext, BuildDelegate
from .registry import Registry, RegistryLister, RegistryLookup, RegistryPruner, RegistryPublisher

__all__ = [
    "BuildContext",
    "BuildDelegate",
    "Registry",
    "RegistryLister",
    "RegistryLookup",
    "RegistryPruner",
    "RegistryPublisher",
]
