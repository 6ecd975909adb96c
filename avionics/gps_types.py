"""Data types shared by the NMEA parser and its users."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

MAX_SATELLITES = 12
"""Number of satellite slots kept for GSA IDs and GSV details."""


class Statement(IntEnum):
    """Kinds of NMEA statement the parser recognises."""

    UNKNOWN = 0
    GGA = 1
    GSA = 2
    GSV = 3
    RMC = 4
    UBX = 5
    UBX_TIME = 6
    CHECKSUM_FAIL = 255


@dataclass
class Satellite:
    """One satellite in view, as reported by a GSV statement."""

    num: int = 0
    elevation: int = 0
    azimuth: int = 0
    snr: int = 0


def _satellite_ids() -> list[int]:
    return [0] * MAX_SATELLITES


def _satellite_descriptions() -> list[Satellite]:
    return [Satellite() for _ in range(MAX_SATELLITES)]


@dataclass
class GpsData:
    """Navigation data collected from valid NMEA statements."""

    # GGA: position, fix and UTC time
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    geo_sep: float = 0.0
    sats_in_use: int = 0
    fix: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    # GSA: dilution of precision and satellites in use
    dop_h: float = 0.0
    dop_v: float = 0.0
    dop_p: float = 0.0
    fix_mode: int = 0
    satellites_ids: list[int] = field(default_factory=_satellite_ids)

    # GSV: satellites in view
    sats_in_view: int = 0
    sats_in_view_desc: list[Satellite] = field(default_factory=_satellite_descriptions)

    # RMC: validity, motion and date
    is_valid: bool = False
    speed: float = 0.0
    course: float = 0.0
    variation: float = 0.0
    date: int = 0
    month: int = 0
    year: int = 0

    # PUBX TIME
    utc_tow: float = 0.0
    utc_wk: int = 0
    leap_sec: int = 0
    clk_bias: int = 0
    clk_drift: float = 0.0
    tp_gran: int = 0