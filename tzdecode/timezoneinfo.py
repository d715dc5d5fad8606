"""Library for loading TZif files for a timezone key.

This package follows the same approach as zoneinfo for loading timezone
data, except that it prefers the tzdata python package and then falls back
to the system TZPATH. The decoders in `tzdecode.tzif` and `tzdecode.tz_rule`
never read files themselves; this module is the caller that reads the file
contents, decodes them and decodes the footer.
"""

from __future__ import annotations

import logging
import os
import zoneinfo
from functools import cache
from importlib import resources
from typing import Optional

from .exceptions import TzDecodeError
from .model import ParseResult
from .tz_rule import ParseOptions, Rule, parse_tz_rule
from .tzif import read_tzif

__all__ = [
    "TimezoneInfoError",
    "read_timezones",
    "read_bytes",
    "read",
    "read_rule",
]

_LOGGER = logging.getLogger(__name__)


class TimezoneInfoError(Exception):
    """Raised on error loading timezone information."""


@cache
def _read_system_timezones() -> set[str]:
    """Read and cache the set of system and tzdata timezones."""
    return zoneinfo.available_timezones()


@cache
def _read_tzdata_timezones() -> set[str]:
    """Returns the set of valid timezones from tzdata only."""
    try:
        with resources.files("tzdata").joinpath("zones").open(
            "r", encoding="utf-8"
        ) as zones_file:
            return {line.strip() for line in zones_file.readlines()}
    except ModuleNotFoundError:
        return set()


@cache
def _find_tzfile(key: str) -> Optional[str]:
    """Retrieve the path to a TZif file from a key."""
    for search_path in zoneinfo.TZPATH:
        filepath = os.path.join(search_path, key)
        if os.path.isfile(filepath):
            return filepath
    return None


def _iana_key_to_resource(key: str) -> tuple[str, str]:
    """Returns the package and resource file for the specified timezone."""
    if "/" not in key:
        return "tzdata.zoneinfo", key
    package_loc, resource = key.rsplit("/", 1)
    package = "tzdata.zoneinfo." + package_loc.replace("/", ".")
    return package, resource


def read_timezones() -> set[str]:
    """Returns the set of timezone keys that can be read."""
    return _read_system_timezones() | _read_tzdata_timezones()


def read_bytes(key: str) -> bytes:
    """Read the raw TZif file contents for the timezone key."""
    if key not in read_timezones():
        raise TimezoneInfoError(f"Unable to find timezone in system timezones: {key}")

    # Prefer tzdata package
    (package, resource) = _iana_key_to_resource(key)
    try:
        with resources.files(package).joinpath(resource).open("rb") as tzdata_file:
            return tzdata_file.read()
    except ModuleNotFoundError:
        _LOGGER.debug("Timezone %s not found in tzdata package", key)
    except FileNotFoundError:
        _LOGGER.debug("Timezone %s not found in tzdata package", key)

    # Fallback to zoneinfo file on local disk
    if (tzfile := _find_tzfile(key)) is not None:
        try:
            with open(tzfile, "rb") as tzfile_file:
                return tzfile_file.read()
        except OSError as err:
            raise TimezoneInfoError(f"Unable to read tzdata file: {key}") from err

    raise TimezoneInfoError(f"Unable to find timezone data for {key}")


def read(key: str) -> ParseResult:
    """Read and decode the TZif file for the timezone key."""
    _LOGGER.debug("Reading timezone: %s", key)
    try:
        return read_tzif(read_bytes(key))
    except TzDecodeError as err:
        raise TimezoneInfoError(f"Unable to decode tzdata file: {key}") from err


def read_rule(key: str) -> Optional[Rule]:
    """Read the TZ rule in the footer of the TZif file for the timezone key.

    Returns None for files without a footer or with an empty footer. Footers
    of version 3 files are parsed with the version 3 extensions enabled.
    """
    result = read(key)
    if not result.footer:
        return None
    options = ParseOptions(
        extended_transition_offset=result.version >= 3,
        all_year_dst=result.version >= 3,
    )
    try:
        return parse_tz_rule(result.footer, options)
    except TzDecodeError as err:
        raise TimezoneInfoError(f"Unable to parse TZ footer for {key}") from err
