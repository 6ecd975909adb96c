"""Great-circle distance, bearing and speed unit conversion."""

from __future__ import annotations

import math
from enum import IntEnum

EARTH_RADIUS_KM = 6371.0
"""Mean Earth radius in kilometres."""

_DEG_TO_RAD = 0.01745329251994
_RAD_TO_DEG = 57.29577951308232


class SpeedUnit(IntEnum):
    """Target units for converting a speed given in knots."""

    # Metric
    KPS = 0
    KPH = 1
    MPS = 2
    MPM = 3

    # Imperial
    MIPS = 4
    MPH = 5
    FPS = 6
    FPM = 7

    # Pace, for runners
    MPK = 8
    SPK = 9
    SP100M = 10
    MIPM = 11
    SPM = 12
    SP100Y = 13

    # Nautical
    SMPH = 14

    @property
    def factor(self) -> float:
        """Multiplier applied to a speed in knots."""
        return _FACTORS[self]


_FACTORS = {
    SpeedUnit.KPS: 0.000514,
    SpeedUnit.KPH: 1.852,
    SpeedUnit.MPS: 0.5144,
    SpeedUnit.MPM: 30.87,
    SpeedUnit.MIPS: 0.0003197,
    SpeedUnit.MPH: 1.151,
    SpeedUnit.FPS: 1.688,
    SpeedUnit.FPM: 101.3,
    SpeedUnit.MPK: 32.4,
    SpeedUnit.SPK: 1944.0,
    SpeedUnit.SP100M: 194.4,
    SpeedUnit.MIPM: 52.14,
    SpeedUnit.SPM: 3128.0,
    SpeedUnit.SP100Y: 177.7,
    SpeedUnit.SMPH: 1.0,
}


def _radians(degrees: float) -> float:
    return degrees * _DEG_TO_RAD


def distance(lat_start: float, lon_start: float, lat_end: float, lon_end: float) -> float:
    """Return the haversine distance in metres between two points in degrees."""
    d_lat = _radians(lat_end - lat_start)
    d_lon = _radians(lon_end - lon_start)
    las = _radians(lat_start)
    lae = _radians(lat_end)

    a = (
        math.sin(d_lat * 0.5) ** 2
        + math.sin(d_lon * 0.5) ** 2 * math.cos(las) * math.cos(lae)
    )
    return EARTH_RADIUS_KM * 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a)) * 1000.0


def bearing(lat_start: float, lon_start: float, lat_end: float, lon_end: float) -> float:
    """Return the initial bearing in degrees from north, in the range [0, 360)."""
    las = _radians(lat_start)
    los = _radians(lon_start)
    lae = _radians(lat_end)
    loe = _radians(lon_end)

    y = math.sin(loe - los) * math.cos(lae)
    x = math.cos(las) * math.sin(lae) - math.sin(las) * math.cos(lae) * math.cos(loe - los)

    result = math.atan2(y, x) * _RAD_TO_DEG
    if result < 0:
        result += 360.0
    return result


def distance_bearing(
    lat_start: float, lon_start: float, lat_end: float, lon_end: float
) -> tuple[float, float]:
    """Return ``(distance_m, bearing_deg)`` from the start to the end point."""
    return (
        distance(lat_start, lon_start, lat_end, lon_end),
        bearing(lat_start, lon_start, lat_end, lon_end),
    )


def to_speed(knots: float, unit: SpeedUnit | int) -> float:
    """Convert a speed in knots to ``unit``.

    Raises ValueError if ``unit`` is not a known speed unit.
    """
    return knots * SpeedUnit(unit).factor