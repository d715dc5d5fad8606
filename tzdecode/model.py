"""Data model for the results of decoding a TZif file."""

from __future__ import annotations

from collections import namedtuple
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Header:
    """TZif header counters."""

    version: int
    """The version of the file format (1, 2 or 3)."""

    isutcnt: int
    """The number of UT/local indicators in the data block."""

    isstdcnt: int
    """The number of standard/wall indicators in the data block."""

    leapcnt: int
    """The number of leap second records in the data block."""

    timecnt: int
    """The number of time transitions in the data block."""

    typecnt: int
    """The number of local time type records in the data block."""

    charcnt: int
    """The number of octets of time zone designations in the data block."""


LocalTimeType = namedtuple("LocalTimeType", ["offset", "dst", "designation_index"])
"""A local time type record referenced by transitions.

The offset is the number of seconds added to UTC to determine local time,
dst is True for daylight saving time and the designation_index is the byte
offset of the name in the designations of the data block.
"""


LeapSecond = namedtuple("LeapSecond", ["occurrence", "correction"])
"""A correction that needs to be applied to UTC in order to determine TAI.

The occurrence is the time at which the leap-second correction occurs.
The correction is the value of LEAPCORR on or after the occurrence.
"""


@dataclass(frozen=True)
class DataBlock:
    """The decoded fields of a TZif data block."""

    transitions: tuple[int, ...]
    """Transition times at which the rules for computing local time change."""

    transition_types: tuple[int, ...]
    """Index into types for each transition."""

    types: tuple[LocalTimeType, ...]
    """Local time type records."""

    designations: Mapping[int, str]
    """Time zone designation names keyed by their byte offset."""

    leap_seconds: tuple[LeapSecond, ...]

    std_wall_indicators: tuple[bool, ...]
    """Whether the transition times of each type are standard (else wall clock) time."""

    ut_local_indicators: tuple[bool, ...]
    """Whether the transition times of each type are UT (else local) time."""

    def designation(self, index: int) -> str:
        """Return the designation name that contains the byte at index.

        Indexes may point into the middle of a name, in which case the
        suffix is returned (e.g. index 1 of "LMT" is "MT").
        """
        for start in sorted(self.designations, reverse=True):
            if start <= index:
                name = self.designations[start]
                if index - start <= len(name):
                    return name[index - start :]
                break
        raise KeyError(f"No designation at index {index}")


@dataclass(frozen=True)
class ParseResult:
    """The results of parsing the TZif file."""

    version: int
    """The version of the file format."""

    header: Header
    """The header describing the decoded data block."""

    data: DataBlock

    footer: Optional[str] = None
    """A POSIX TZ string for times after the last transition, None for version 1."""

    remaining: bytes = field(default=b"", repr=False)
    """Any bytes found after the footer."""
