"""Test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
import struct
from typing import Any

import pytest

V1_TIME_FORMAT = "l"
V2_TIME_FORMAT = "q"


@dataclass
class TzifContents:
    """Field values used to encode a TZif header and data block."""

    transitions: list[int] = field(default_factory=list)
    transition_types: list[int] = field(default_factory=list)
    types: list[tuple[int, int, int]] = field(default_factory=lambda: [(0, 0, 0)])
    designations: bytes = b"UTC\x00"
    leap_seconds: list[tuple[int, int]] = field(default_factory=list)
    std_wall_indicators: list[int] = field(default_factory=list)
    ut_local_indicators: list[int] = field(default_factory=list)

    def header(self, version: bytes, **overrides: Any) -> bytes:
        """Encode a header with counters computed from the fields."""
        values = {
            "magic": b"TZif",
            "reserved": bytes(15),
            "isutcnt": len(self.ut_local_indicators),
            "isstdcnt": len(self.std_wall_indicators),
            "leapcnt": len(self.leap_seconds),
            "timecnt": len(self.transitions),
            "typecnt": len(self.types),
            "charcnt": len(self.designations),
        }
        values.update(overrides)
        return struct.pack(
            ">4sc15s6L",
            values["magic"],
            version,
            values["reserved"],
            values["isutcnt"],
            values["isstdcnt"],
            values["leapcnt"],
            values["timecnt"],
            values["typecnt"],
            values["charcnt"],
        )

    def datablock(self, time_format: str) -> bytes:
        """Encode the data block using the time format for the version."""
        return b"".join(
            [
                struct.pack(f">{len(self.transitions)}{time_format}", *self.transitions),
                bytes(self.transition_types),
                b"".join(struct.pack(">lBB", *record) for record in self.types),
                self.designations,
                b"".join(
                    struct.pack(f">{time_format}l", *record)
                    for record in self.leap_seconds
                ),
                bytes(self.std_wall_indicators),
                bytes(self.ut_local_indicators),
            ]
        )


def encode_tzif(
    version: bytes = b"2",
    *,
    footer: bytes = b"\nUTC0\n",
    header: dict[str, Any] | None = None,
    v1_fields: dict[str, Any] | None = None,
    v1_header: dict[str, Any] | None = None,
    **fields: Any,
) -> bytes:
    """Encode a TZif file from data block fields.

    Version 2+ files use v1_fields for the version 1 data block, or the same
    fields as the version 2+ data block when not specified.
    """
    contents = TzifContents(**fields)
    if version == b"\x00":
        return contents.header(version, **(header or {})) + contents.datablock(
            V1_TIME_FORMAT
        )
    v1_contents = TzifContents(**v1_fields) if v1_fields is not None else contents
    return b"".join(
        [
            v1_contents.header(version, **(v1_header or {})),
            v1_contents.datablock(V1_TIME_FORMAT),
            contents.header(version, **(header or {})),
            contents.datablock(V2_TIME_FORMAT),
            footer,
        ]
    )


@pytest.fixture(name="encode_tzif")
def encode_tzif_fixture() -> Callable[..., bytes]:
    """Fixture that returns a function to encode TZif files."""
    return encode_tzif


# rfc8536 Appendix B.1: Version 1 File Representing UTC (with Leap Seconds)
RFC_EXAMPLE_1_LEAP_SECONDS = [
    (78796800, 1),
    (94694401, 2),
    (126230402, 3),
    (157766403, 4),
    (189302404, 5),
    (220924805, 6),
    (252460806, 7),
    (283996807, 8),
    (315532808, 9),
    (362793609, 10),
    (394329610, 11),
    (425865611, 12),
    (489024012, 13),
    (567993613, 14),
    (631152014, 15),
    (662688015, 16),
    (709948816, 17),
    (741484817, 18),
    (773020818, 19),
    (820454419, 20),
    (867715220, 21),
    (915148821, 22),
    (1136073622, 23),
    (1230768023, 24),
    (1341100824, 25),
    (1435708825, 26),
    (1483228826, 27),
]

# rfc8536 Appendix B.2: Version 2 File Representing Pacific/Honolulu
RFC_EXAMPLE_2_FIELDS: dict[str, Any] = {
    "transitions": [
        -2334101314,
        -1157283000,
        -1155436200,
        -880198200,
        -769395600,
        -765376200,
        -712150200,
    ],
    "transition_types": [1, 2, 1, 3, 4, 1, 5],
    "types": [
        (-37886, 0, 0),
        (-37800, 0, 4),
        (-34200, 1, 8),
        (-34200, 1, 12),
        (-34200, 1, 16),
        (-36000, 0, 4),
    ],
    "designations": b"LMT\x00HST\x00HDT\x00HWT\x00HPT\x00",
    "std_wall_indicators": [0, 0, 0, 0, 1, 0],
    "ut_local_indicators": [0, 0, 0, 0, 1, 0],
}


@pytest.fixture
def rfc_example_1() -> bytes:
    """A version 1 file representing UTC with leap seconds."""
    return encode_tzif(
        b"\x00",
        leap_seconds=RFC_EXAMPLE_1_LEAP_SECONDS,
        std_wall_indicators=[0],
        ut_local_indicators=[0],
    )


@pytest.fixture
def rfc_example_2() -> bytes:
    """A version 2 file representing Pacific/Honolulu."""
    # The version 1 data block clamps the first transition to 32 bits
    v1_fields = dict(RFC_EXAMPLE_2_FIELDS)
    v1_fields["transitions"] = [-(2**31)] + RFC_EXAMPLE_2_FIELDS["transitions"][1:]
    return encode_tzif(
        b"2",
        footer=b"\nHST10\n",
        v1_fields=v1_fields,
        **RFC_EXAMPLE_2_FIELDS,
    )


@pytest.fixture
def rfc_example_3() -> bytes:
    """A truncated version 3 file representing Asia/Jerusalem."""
    return encode_tzif(
        b"3",
        footer=b"\nIST-2IDT,M3.4.4/26,M10.5.0\n",
        v1_fields={"types": [(0, 0, 0)], "designations": b"\x00"},
        transitions=[2145916800],
        transition_types=[0],
        types=[(7200, 0, 0)],
        designations=b"IST\x00",
        std_wall_indicators=[1],
        ut_local_indicators=[1],
    )
