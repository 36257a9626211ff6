# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for time bucket derivation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from depcache.buckets import bucket, period_index, validate_format
from depcache.errors import ConfigError


def test_monthly_bucket_is_constant_within_a_month() -> None:
    start = datetime(2025, 11, 1, tzinfo=timezone.utc)
    labels = {bucket(start + timedelta(hours=hours)) for hours in range(0, 30 * 24)}

    assert labels == {"2025-11"}


def test_monthly_bucket_changes_at_boundary() -> None:
    before = datetime(2025, 11, 30, 23, 59, 59, tzinfo=timezone.utc)

    assert bucket(before) == "2025-11"
    assert bucket(before + timedelta(seconds=1)) == "2025-12"


def test_offsets_are_normalised_to_utc() -> None:
    local = datetime(2025, 12, 1, 0, 30, tzinfo=timezone(timedelta(hours=2)))

    assert bucket(local) == "2025-11"


def test_naive_datetimes_are_treated_as_utc() -> None:
    assert bucket(datetime(2025, 1, 31, 23, 0)) == "2025-01"


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        ("weekly", "2025-W01"),
        ("daily", "2024-12-30"),
        ("quarterly", "2024-Q4"),
        ("yearly", "2024"),
        ("%Y%m", "202412"),
    ],
)
def test_other_formats(fmt: str, expected: str) -> None:
    assert bucket(datetime(2024, 12, 30, tzinfo=timezone.utc), fmt) == expected


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ConfigError):
        validate_format("fortnightly")


def test_period_index_counts_consecutive_periods() -> None:
    assert period_index("2026-01") - period_index("2025-12") == 1
    assert period_index("2025-W01", "weekly") - period_index("2024-W52", "weekly") == 1
    assert period_index("2025-Q1", "quarterly") - period_index("2024-Q4", "quarterly") == 1
    assert period_index("2025-03-01", "daily") - period_index("2025-02-28", "daily") == 1


def test_period_index_rejects_foreign_labels() -> None:
    with pytest.raises(ValueError):
        period_index("2025-W03", "monthly")
    with pytest.raises(ValueError):
        period_index("2025-13", "monthly")


def test_period_index_requires_named_period() -> None:
    with pytest.raises(ConfigError):
        period_index("202412", "%Y%m")
