# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map instants to coarse period labels used to force periodic cache invalidation."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Final

from .errors import ConfigError

TimeBucket = str
Clock = Callable[[], datetime]

DEFAULT_BUCKET_FORMAT: Final[str] = "monthly"


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def to_utc(moment: datetime) -> datetime:
    """Return ``moment`` in UTC, treating naive datetimes as already UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class NamedPeriod:
    """Describe a named bucket period with label rendering and ordering.

    Attributes:
        name: Configuration token selecting the period.
        regex: Pattern matching labels produced by :meth:`label`.
    """

    name: str
    regex: re.Pattern[str]

    def label(self, moment: datetime) -> TimeBucket:
        """Render the bucket label for an aware UTC ``moment``."""

        if self.name == "monthly":
            return f"{moment.year:04d}-{moment.month:02d}"
        if self.name == "weekly":
            iso_year, iso_week, _ = moment.isocalendar()
            return f"{iso_year:04d}-W{iso_week:02d}"
        if self.name == "daily":
            return moment.strftime("%Y-%m-%d")
        if self.name == "quarterly":
            return f"{moment.year:04d}-Q{(moment.month - 1) // 3 + 1}"
        return f"{moment.year:04d}"

    def index(self, label: TimeBucket) -> int:
        """Return an ordinal for ``label`` such that consecutive periods differ by one.

        Args:
            label: Bucket label previously produced by :meth:`label`.

        Returns:
            int: Monotonic period ordinal.

        Raises:
            ValueError: If ``label`` is not a label of this period.
        """

        match = self.regex.fullmatch(label)
        if match is None:
            raise ValueError(f"{label!r} is not a {self.name} bucket")
        first, second = int(match.group(1)), int(match.group(2) or 0)
        if self.name == "monthly":
            if not 1 <= second <= 12:
                raise ValueError(f"{label!r} has an invalid month")
            return first * 12 + second - 1
        if self.name == "weekly":
            return date.fromisocalendar(first, second, 1).toordinal() // 7
        if self.name == "daily":
            return date.fromisoformat(label).toordinal()
        if self.name == "quarterly":
            return first * 4 + second - 1
        return first


NAMED_PERIODS: Final[dict[str, NamedPeriod]] = {
    "monthly": NamedPeriod("monthly", re.compile(r"(\d{4})-(\d{2})")),
    "weekly": NamedPeriod("weekly", re.compile(r"(\d{4})-W(\d{2})")),
    "daily": NamedPeriod("daily", re.compile(r"(\d{4})-(\d{2})-\d{2}")),
    "quarterly": NamedPeriod("quarterly", re.compile(r"(\d{4})-Q([1-4])")),
    "yearly": NamedPeriod("yearly", re.compile(r"(\d{4})()")),
}


def validate_format(fmt: str) -> str:
    """Return ``fmt`` when it names a period or is a strftime pattern.

    Raises:
        ConfigError: If ``fmt`` is neither a named period nor a pattern.
    """

    if fmt in NAMED_PERIODS or "%" in fmt:
        return fmt
    choices = ", ".join(sorted(NAMED_PERIODS))
    raise ConfigError(f"unknown time bucket format {fmt!r}; expected one of {choices} or a strftime pattern")


def bucket(now: datetime, fmt: str = DEFAULT_BUCKET_FORMAT) -> TimeBucket:
    """Return the bucket label for ``now`` under ``fmt``.

    Args:
        now: Instant to classify; naive values are interpreted as UTC.
        fmt: Named period (``monthly``, ``weekly``...) or strftime pattern.

    Returns:
        TimeBucket: Period label, e.g. ``"2025-11"`` for monthly buckets.
    """

    moment = to_utc(now)
    period = NAMED_PERIODS.get(validate_format(fmt))
    if period is not None:
        return period.label(moment)
    return moment.strftime(fmt)


def period_index(label: TimeBucket, fmt: str = DEFAULT_BUCKET_FORMAT) -> int:
    """Return the ordinal of ``label`` for arithmetic between buckets.

    Raises:
        ConfigError: If ``fmt`` is a custom pattern without period arithmetic.
        ValueError: If ``label`` does not belong to ``fmt``.
    """

    period = NAMED_PERIODS.get(validate_format(fmt))
    if period is None:
        raise ConfigError(f"time bucket format {fmt!r} does not support period arithmetic")
    return period.index(label)


__all__ = [
    "Clock",
    "DEFAULT_BUCKET_FORMAT",
    "NAMED_PERIODS",
    "NamedPeriod",
    "TimeBucket",
    "bucket",
    "period_index",
    "to_utc",
    "utc_now",
    "validate_format",
]
