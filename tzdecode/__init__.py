"""Decoders for TZif files and POSIX TZ strings.

The `tzif` module decodes the binary TZif format (rfc8536) and the `tz_rule`
module decodes the POSIX TZ strings found in TZif footers. The
`timezoneinfo` module loads TZif files for an IANA timezone key.
"""

__all__ = [
    "exceptions",
    "model",
    "timezoneinfo",
    "tz_rule",
    "tzif",
]
