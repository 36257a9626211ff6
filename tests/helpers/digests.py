# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Expected fingerprint values computed independently of the library."""

from __future__ import annotations

import hashlib


def framed_digest(*members: tuple[str, bytes]) -> str:
    """Return the digest of ``(relative_path, content)`` members in the given order."""

    hasher = hashlib.sha256()
    for key, content in members:
        hasher.update(f"{key}\0{len(content)}\0".encode())
        hasher.update(content)
    return hasher.hexdigest()


__all__ = ["framed_digest"]
