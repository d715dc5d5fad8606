"""Library for decoding TZif binary files.

A TZif file describes the history of local time changes for a location as
a table of transitions, the local time types the transitions refer to and
a footer with a POSIX TZ string for times after the last transition. See
rfc8536 for the TZif file format.

A version 1 file has a single header and data block with 32-bit time values.
Version 2 and 3 files start with the same version 1 header and data block,
followed by a second header, a data block with 64-bit time values and the
footer. Readers are expected to skip the version 1 data block in that case,
which is what this parser does: its contents are never decoded.

This module only decodes the structure of the file. It does not read files
from disk and does not interpret the transitions or the footer. See
`tzdecode.timezoneinfo` for loading files and `tzdecode.tz_rule` for
parsing the footer.
"""

from __future__ import annotations

import enum
import logging
import struct
from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from .exceptions import (
    DataBlockError,
    FooterError,
    HeaderError,
    ValidationError,
)
from .model import DataBlock, Header, LeapSecond, LocalTimeType, ParseResult

__all__ = [
    "read_tzif",
    "validate_datablock",
]

_LOGGER = logging.getLogger(__name__)

_MAGIC = "TZif".encode()

# +---------------+---+
# |  magic    (4) |ver|
# +---------------+---+---------------------------------------+
# |           [unused - reserved for future use] (15)         |
# +---------------+---------------+---------------+-----------+
# |  isutcnt  (4) |  isstdcnt (4) |  leapcnt  (4) |
# +---------------+---------------+---------------+
# |  timecnt  (4) |  typecnt  (4) |  charcnt  (4) |
# +---------------+---------------+---------------+
_HEADER_SIZE = 44
_HEADER_STRUCT_FORMAT = "".join(
    [
        ">",  # Use standard size of packed value bytes
        "4s",  # magic (4 bytes)
        "c",  # version (1 byte)
        "15s",  # reserved, must be zero
        "6L",  # isutcnt, isstdcnt, leapcnt, timecnt, typecnt, charcnt
    ]
)

# Records specifying the local time type
_LOCAL_TIME_TYPE_STRUCT_FORMAT = "".join(
    [
        ">",  # Use standard size of packed value bytes
        "l",  # utoff (4 bytes): Number of seconds to add to UTC to determine local time
        "B",  # dst (1 byte): Indicates the time is DST (1) or standard (0)
        "B",  # idx (1 byte): Offset index into the time zone designation octets
    ]
)
_LOCAL_TIME_RECORD_SIZE = 6

# Leap second corrections are always 4 bytes regardless of version
_CORRECTION_SIZE = 4

# Each time value SHOULD be at least -2**59, the greatest negated power of 2
# that predates the Big Bang.
_TIME_FLOOR = -(2**59)


class _TZifVersion(enum.Enum):
    """Defines information related to TZif versions."""

    V1 = (b"\x00", 1, 4, "l")  # 32-bit in v1
    V2 = (b"2", 2, 8, "q")  # 64-bit in v2+
    V3 = (b"3", 3, 8, "q")

    def __init__(self, version: bytes, number: int, time_size: int, time_format: str):
        self._version = version
        self._number = number
        self._time_size = time_size
        self._time_format = time_format

    @property
    def version(self) -> bytes:
        """Return the version byte string."""
        return self._version

    @property
    def number(self) -> int:
        """Return the version as a number."""
        return self._number

    @property
    def time_size(self) -> int:
        """Return the TIME_SIZE used in the data block parsing."""
        return self._time_size

    @property
    def time_format(self) -> str:
        """Return the struct unpack format string for TIME_SIZE objects."""
        return self._time_format

    @classmethod
    def from_bytes(cls, value: bytes) -> Optional["_TZifVersion"]:
        """Return the version for the header version byte, if supported."""
        for version in cls:
            if version.version == value:
                return version
        return None


class _Reader:
    """A cursor over the TZif buffer that bounds checks every read."""

    def __init__(self, content: bytes) -> None:
        self._content = content
        self._offset = 0

    @property
    def remaining(self) -> int:
        """Return the number of bytes not yet consumed."""
        return len(self._content) - self._offset

    def read(self, size: int) -> bytes:
        """Consume and return exactly size bytes."""
        if size > self.remaining:
            raise EOFError(
                f"Expected {size} bytes at offset {self._offset} but only {self.remaining} remain"
            )
        value = self._content[self._offset : self._offset + size]
        self._offset += size
        return value

    def read_rest(self) -> bytes:
        """Consume and return all remaining bytes."""
        return self.read(self.remaining)


def _read_header(reader: _Reader, header_pass: int) -> tuple[Header, _TZifVersion]:
    """Read and validate a header at the current position."""
    try:
        header_bytes = reader.read(_HEADER_SIZE)
    except EOFError as err:
        raise HeaderError(
            "Buffer too short for a TZif header", header_pass=header_pass
        ) from err
    (
        magic,
        version_byte,
        reserved,
        isutcnt,
        isstdcnt,
        leapcnt,
        timecnt,
        typecnt,
        charcnt,
    ) = struct.unpack(_HEADER_STRUCT_FORMAT, header_bytes)
    if magic != _MAGIC:
        raise HeaderError(
            "TZif file did not contain magic header", header_pass=header_pass
        )
    if (version := _TZifVersion.from_bytes(version_byte)) is None:
        raise HeaderError(
            f"Unsupported TZif version {version_byte!r}", header_pass=header_pass
        )
    if any(reserved):
        raise HeaderError("Reserved header bytes are not zero", header_pass=header_pass)
    if isutcnt not in (0, typecnt):
        raise HeaderError(
            f"UT/local indicators in datablock mismatched ({isutcnt}, {typecnt})",
            header_pass=header_pass,
        )
    # The standard/wall count is accepted when isutcnt matches typecnt
    if isstdcnt != 0 and isutcnt != typecnt:
        raise HeaderError(
            f"standard/wall indicators in datablock mismatched ({isstdcnt}, {typecnt})",
            header_pass=header_pass,
        )
    # Only the version 1 header of a version 2+ file may omit designations
    if charcnt == 0 and (header_pass != 1 or version == _TZifVersion.V1):
        raise HeaderError(
            "Total number of designation octets is zero", header_pass=header_pass
        )
    header = Header(
        version=version.number,
        isutcnt=isutcnt,
        isstdcnt=isstdcnt,
        leapcnt=leapcnt,
        timecnt=timecnt,
        typecnt=typecnt,
        charcnt=charcnt,
    )
    _LOGGER.debug("Read TZif header (pass %d): %s", header_pass, header)
    return (header, version)


def _datablock_sizes(header: Header, version: _TZifVersion) -> list[int]:
    """Return the byte length of each of the seven data block fields."""
    # +---------------------------------------------------------+
    # |  transition times          (timecnt x TIME_SIZE)        |
    # +---------------------------------------------------------+
    # |  transition types          (timecnt)                    |
    # +---------------------------------------------------------+
    # |  local time type records   (typecnt x 6)                |
    # +---------------------------------------------------------+
    # |  time zone designations    (charcnt)                    |
    # +---------------------------------------------------------+
    # |  leap-second records       (leapcnt x (TIME_SIZE + 4))  |
    # +---------------------------------------------------------+
    # |  standard/wall indicators  (isstdcnt)                   |
    # +---------------------------------------------------------+
    # |  UT/local indicators       (isutcnt)                    |
    # +---------------------------------------------------------+
    return [
        header.timecnt * version.time_size,
        header.timecnt,
        header.typecnt * _LOCAL_TIME_RECORD_SIZE,
        header.charcnt,
        header.leapcnt * (version.time_size + _CORRECTION_SIZE),
        header.isstdcnt,
        header.isutcnt,
    ]


def _skip_v1_datablock(reader: _Reader, header: Header) -> tuple[Header, _TZifVersion]:
    """Skip over the version 1 data block and read the version 2+ header."""
    size = sum(_datablock_sizes(header, _TZifVersion.V1))
    _LOGGER.debug("Skipping %d bytes of version 1 data block", size)
    try:
        reader.read(size)
    except EOFError as err:
        raise HeaderError("Truncated version 1 data block", header_pass=2) from err
    return _read_header(reader, header_pass=2)


def _parse_transitions(data: bytes, version: _TZifVersion) -> tuple[int, ...]:
    """A series of transition times in sorted order."""
    count = len(data) // version.time_size
    transitions: tuple[int, ...] = struct.unpack(
        f">{count}{version.time_format}", data
    )
    for transition in transitions:
        if transition < _TIME_FLOOR:
            raise DataBlockError(f"Transition time {transition} predates {_TIME_FLOOR}")
    return transitions


def _parse_transition_types(data: bytes) -> tuple[int, ...]:
    """Zero-based indices into the local time type records, one per transition."""
    transition_types: tuple[int, ...] = struct.unpack(f">{len(data)}b", data)
    for transition_type in transition_types:
        if transition_type < 0:
            raise DataBlockError(f"Transition type {transition_type} is negative")
    return transition_types


def _parse_types(data: bytes) -> tuple[LocalTimeType, ...]:
    """Local time type records."""
    types = []
    for utoff, dst, idx in struct.iter_unpack(_LOCAL_TIME_TYPE_STRUCT_FORMAT, data):
        if dst not in (0, 1):
            raise DataBlockError(f"Local time type dst flag must be 0 or 1, was {dst}")
        types.append(LocalTimeType(utoff, dst == 1, idx))
    return tuple(types)


def _parse_designations(data: bytes) -> Mapping[int, str]:
    """An array of NUL-terminated time zone designation strings.

    Each name is keyed by the byte offset where it starts, which is how
    local time type records refer to them.
    """
    names = data.split(b"\x00")
    while names and not names[-1]:
        names.pop()
    designations: dict[int, str] = {}
    offset = 0
    for name in names:
        try:
            designations[offset] = name.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DataBlockError(f"Invalid designation at offset {offset}") from err
        offset += len(name) + 1
    return MappingProxyType(designations)


def _parse_leap_seconds(data: bytes, version: _TZifVersion) -> tuple[LeapSecond, ...]:
    """Leap second records of (occurrence, correction)."""
    return tuple(
        LeapSecond._make(values)
        for values in struct.iter_unpack(f">{version.time_format}l", data)
    )


def _parse_indicators(data: bytes, name: str) -> tuple[bool, ...]:
    """A series of single byte boolean indicators."""
    for value in data:
        if value not in (0, 1):
            raise DataBlockError(f"{name} indicator must be 0 or 1, was {value}")
    return tuple(value == 1 for value in data)


def validate_datablock(data: DataBlock) -> None:
    """Verify the invariants across the fields of a decoded data block."""
    if len(data.transitions) != len(data.transition_types):
        raise ValidationError(
            f"Transitions and transition types mismatched ({len(data.transitions)}, "
            f"{len(data.transition_types)})"
        )
    for index, (isstd, isut) in enumerate(
        zip(data.std_wall_indicators, data.ut_local_indicators)
    ):
        if isut and not isstd:
            raise ValidationError(
                f"UT/local indicator was set but standard/wall indicator was not for type {index}"
            )


def _read_datablock(
    header: Header, version: _TZifVersion, reader: _Reader
) -> DataBlock:
    """Read the data block described by the header."""
    sizes = _datablock_sizes(header, version)
    if sum(sizes) > reader.remaining:
        raise DataBlockError(
            f"Data block requires {sum(sizes)} bytes but only {reader.remaining} remain"
        )
    (
        transitions,
        transition_types,
        types,
        designations,
        leap_seconds,
        std_wall_indicators,
        ut_local_indicators,
    ) = [reader.read(size) for size in sizes]
    data = DataBlock(
        transitions=_parse_transitions(transitions, version),
        transition_types=_parse_transition_types(transition_types),
        types=_parse_types(types),
        designations=_parse_designations(designations),
        leap_seconds=_parse_leap_seconds(leap_seconds, version),
        std_wall_indicators=_parse_indicators(std_wall_indicators, "standard/wall"),
        ut_local_indicators=_parse_indicators(ut_local_indicators, "UT/local"),
    )
    validate_datablock(data)
    return data


def _read_footer(version: _TZifVersion, reader: _Reader) -> tuple[Optional[str], bytes]:
    """Read the footer and return it with any bytes that follow it."""
    rest = reader.read_rest()
    if version == _TZifVersion.V1:
        return (None, rest)
    if not rest.startswith(b"\n"):
        raise FooterError("TZ footer did not start with a newline")
    if (end := rest.find(b"\n", 1)) == -1:
        raise FooterError("TZ footer did not end with a newline")
    try:
        footer = rest[1:end].decode("ascii")
    except UnicodeDecodeError as err:
        raise FooterError("TZ footer is not an ASCII string") from err
    return (footer, rest[end + 1 :])


def read_tzif(content: bytes) -> ParseResult:
    """Decode the contents of a TZif file."""
    reader = _Reader(content)
    (header, version) = _read_header(reader, header_pass=1)
    if version != _TZifVersion.V1:
        (header, version) = _skip_v1_datablock(reader, header)
    data = _read_datablock(header, version, reader)
    (footer, remaining) = _read_footer(version, reader)
    if remaining:
        _LOGGER.debug("Ignoring %d bytes after TZif footer", len(remaining))
    return ParseResult(
        version=version.number,
        header=header,
        data=data,
        footer=footer,
        remaining=remaining,
    )
