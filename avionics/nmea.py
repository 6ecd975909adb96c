"""Streaming NMEA 0183 parser for GGA, GSA, GSV, RMC and u-blox PUBX TIME statements."""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable

from avionics.gps_types import MAX_SATELLITES, GpsData, Statement

_TERM_CAPACITY = 12
"""Longest term kept; further characters of a term are dropped."""

_DOLLAR = ord("$")
_COMMA = ord(",")
_STAR = ord("*")
_CR = ord("\r")
_ZERO = ord("0")

_FLOAT_RE = re.compile(
    rb"""
    \s*
    (
        [+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?\d+)?
      | [+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?
      | [+-]?inf(?:inity)?
      | [+-]?nan
    )
    """,
    re.VERBOSE | re.IGNORECASE,
)

_STATEMENT_PREFIXES = (
    ((b"$GPGGA", b"$GNGGA"), Statement.GGA),
    ((b"$GPGSA", b"$GNGSA"), Statement.GSA),
    ((b"$GPGSV", b"$GNGSV"), Statement.GSV),
    ((b"$GPRMC", b"$GNRMC"), Statement.RMC),
)

_COPIED_FIELDS = {
    Statement.GGA: (
        "latitude", "longitude", "altitude", "geo_sep", "sats_in_use",
        "fix", "hours", "minutes", "seconds",
    ),
    Statement.GSA: ("dop_h", "dop_p", "dop_v", "fix_mode"),
    Statement.GSV: ("sats_in_view",),
    Statement.RMC: ("course", "is_valid", "speed", "variation", "date", "month", "year"),
    Statement.UBX_TIME: (
        "hours", "minutes", "seconds", "date", "month", "year", "utc_tow",
        "utc_wk", "leap_sec", "clk_bias", "clk_drift", "tp_gran",
    ),
}


def _u8(value: int) -> int:
    return value & 0xFF


def _u16(value: int) -> int:
    return value & 0xFFFF


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


def _hex_nibble(char: int) -> int:
    if 0x30 <= char <= 0x39:
        value = char - 0x30
    elif 0x61 <= char <= 0x7A:
        value = char - 0x61 + 10
    elif 0x41 <= char <= 0x5A:
        value = char - 0x41 + 10
    else:
        value = 0
    return value & 0x0F


def _parse_int(text: bytes) -> int:
    text = text.lstrip(b" ")
    negative = text.startswith(b"-")
    if negative:
        text = text[1:]
    result = 0
    for char in text:
        if not 0x30 <= char <= 0x39:
            break
        result = 10 * result + (char - _ZERO)
    return -result if negative else result


def _parse_float(text: bytes) -> float:
    match = _FLOAT_RE.match(text.lstrip(b" "))
    if match is None:
        return 0.0
    literal = match.group(1).decode("ascii")
    if "x" in literal.lower():
        return float.fromhex(literal)
    return float(literal)


def _lat_long(text: bytes) -> float:
    """Convert ``ddmm.mmm`` / ``dddmm.mmm`` to decimal degrees."""
    value = _parse_float(text)
    if not math.isfinite(value):
        return value
    whole = int(value)
    degrees = float(int(whole / 100)) if abs(whole) < 2**52 else float(whole // 100)
    minutes = value - degrees * 100.0
    return degrees + minutes / 60.0


class NmeaParser:
    """Incremental NMEA parser that fills a :class:`GpsData` record.

    Bytes are fed in any chunking. A statement's values reach :attr:`data`
    only when its terminating carriage return arrives and its checksum
    matches. ``on_statement``, when given, is called with the statement kind
    after each carriage return, or with ``Statement.CHECKSUM_FAIL``.
    """

    satellite_details: bool = False
    """Whether GSV per-satellite details are parsed into ``sats_in_view_desc``."""

    pubx: bool = False
    """Whether u-blox ``$PUBX`` statements are recognised."""

    def __init__(self, on_statement: Callable[[Statement], None] | None = None) -> None:
        self.on_statement = on_statement
        self.data = GpsData()
        self._begin_sentence()

    def reset(self) -> None:
        """Forget all collected data and any partially received statement."""
        self.data = GpsData()
        self._begin_sentence()

    def feed(self, data: bytes | bytearray | str | Iterable[int]) -> None:
        """Process received characters."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        for char in data:
            if char == _DOLLAR:
                self._begin_sentence()
                self._add(char)
            elif char == _COMMA:
                self._parse_term()
                self._crc ^= char
                self._next_term()
            elif char == _STAR:
                self._parse_term()
                self._star = True
                self._next_term()
            elif char == _CR:
                if self._checksum_ok():
                    self._commit()
                    self._notify(self._stat)
                else:
                    self._notify(Statement.CHECKSUM_FAIL)
            else:
                if not self._star:
                    self._crc ^= char
                self._add(char)

    # -- sentence state -------------------------------------------------

    def _begin_sentence(self) -> None:
        self._stat = Statement.UNKNOWN
        self._term = bytearray(_TERM_CAPACITY + 1)
        self._pos = 0
        self._num = 0
        self._star = False
        self._crc = 0
        self._tmp = GpsData()
        self._gsv_stat_num = 0

    def _add(self, char: int) -> None:
        if self._pos < _TERM_CAPACITY:
            self._term[self._pos] = char
            self._pos += 1
            self._term[self._pos] = 0

    def _next_term(self) -> None:
        self._pos = 0
        self._term[0] = 0
        self._num = _u8(self._num + 1)

    @property
    def _text(self) -> bytes:
        return bytes(self._term[: self._pos])

    def _digit(self, index: int) -> int:
        return self._term[index] - _ZERO

    def _pair(self, index: int) -> int:
        return 10 * self._digit(index) + self._digit(index + 1)

    def _checksum_ok(self) -> bool:
        received = (_hex_nibble(self._term[0]) << 4) | _hex_nibble(self._term[1])
        return self._crc == received

    def _notify(self, statement: Statement) -> None:
        if self.on_statement is not None:
            self.on_statement(statement)

    def _commit(self) -> None:
        fields = _COPIED_FIELDS.get(self._stat)
        if fields is None:
            return
        for name in fields:
            setattr(self.data, name, getattr(self._tmp, name))
        if self._stat is Statement.GSA:
            self.data.satellites_ids = list(self._tmp.satellites_ids)

    # -- term parsing ---------------------------------------------------

    def _parse_term(self) -> None:
        if self._num == 0:
            self._stat = self._identify()
            return
        handler = {
            Statement.GGA: self._parse_gga,
            Statement.GSA: self._parse_gsa,
            Statement.GSV: self._parse_gsv,
            Statement.RMC: self._parse_rmc,
            Statement.UBX: self._parse_ubx,
            Statement.UBX_TIME: self._parse_ubx_time,
        }.get(self._stat)
        if handler is not None:
            handler()

    def _identify(self) -> Statement:
        text = self._text
        for prefixes, statement in _STATEMENT_PREFIXES:
            if text.startswith(prefixes):
                return statement
        if self.pubx and text.startswith(b"$PUBX"):
            return Statement.UBX
        return Statement.UNKNOWN

    def _parse_gga(self) -> None:
        tmp, num = self._tmp, self._num
        if num == 1:
            tmp.hours = _u8(self._pair(0))
            tmp.minutes = _u8(self._pair(2))
            tmp.seconds = _u8(self._pair(4))
        elif num == 2:
            tmp.latitude = _lat_long(self._text)
        elif num == 3:
            if self._term[0] in b"Ss":
                tmp.latitude = -tmp.latitude
        elif num == 4:
            tmp.longitude = _lat_long(self._text)
        elif num == 5:
            if self._term[0] in b"Ww":
                tmp.longitude = -tmp.longitude
        elif num == 6:
            tmp.fix = _u8(_parse_int(self._text))
        elif num == 7:
            tmp.sats_in_use = _u8(_parse_int(self._text))
        elif num == 9:
            tmp.altitude = _parse_float(self._text)
        elif num == 11:
            tmp.geo_sep = _parse_float(self._text)

    def _parse_gsa(self) -> None:
        tmp, num = self._tmp, self._num
        if num == 2:
            tmp.fix_mode = _u8(_parse_int(self._text))
        elif num == 15:
            tmp.dop_p = _parse_float(self._text)
        elif num == 16:
            tmp.dop_h = _parse_float(self._text)
        elif num == 17:
            tmp.dop_v = _parse_float(self._text)
        elif 3 <= num <= 14:
            tmp.satellites_ids[num - 3] = _u8(_parse_int(self._text))

    def _parse_gsv(self) -> None:
        num = self._num
        if num == 2:
            self._gsv_stat_num = _u8(_parse_int(self._text))
        elif num == 3:
            self._tmp.sats_in_view = _u8(_parse_int(self._text))
        elif self.satellite_details and 4 <= num <= 19:
            term = num - 4
            index = _u8(((self._gsv_stat_num - 1) << 2) + (term >> 2))
            if index < MAX_SATELLITES:
                value = _u16(_parse_int(self._text))
                satellite = self.data.sats_in_view_desc[index]
                field = term & 0x03
                if field == 0:
                    satellite.num = _u8(value)
                elif field == 1:
                    satellite.elevation = _u8(value)
                elif field == 2:
                    satellite.azimuth = value
                else:
                    satellite.snr = _u8(value)

    def _parse_rmc(self) -> None:
        tmp, num = self._tmp, self._num
        if num == 2:
            tmp.is_valid = self._term[0] == ord("A")
        elif num == 7:
            tmp.speed = _parse_float(self._text)
        elif num == 8:
            tmp.course = _parse_float(self._text)
        elif num == 9:
            tmp.date = _u8(self._pair(0))
            tmp.month = _u8(self._pair(2))
            tmp.year = _u8(self._pair(4))
        elif num == 10:
            tmp.variation = _parse_float(self._text)
        elif num == 11:
            if self._term[0] in b"Ww":
                tmp.variation = -tmp.variation

    def _parse_ubx(self) -> None:
        if self._term[0] == ord("0") and self._term[1] == ord("4"):
            self._stat = Statement.UBX_TIME

    def _parse_ubx_time(self) -> None:
        tmp, num = self._tmp, self._num
        if num == 2:
            tmp.hours = _u8(self._pair(0))
            tmp.minutes = _u8(self._pair(2))
            tmp.seconds = _u8(self._pair(4))
        elif num == 3:
            tmp.date = _u8(self._pair(0))
            tmp.month = _u8(self._pair(2))
            tmp.year = _u8(self._pair(4))
        elif num == 4:
            tmp.utc_tow = _parse_float(self._text)
        elif num == 5:
            tmp.utc_wk = _u16(_parse_int(self._text))
        elif num == 6:
            if self._term[2] in (ord("D"), 0):
                tmp.leap_sec = _u8(self._pair(0))
            else:
                tmp.leap_sec = _u8(100 * self._digit(0) + self._pair(1))
        elif num == 7:
            tmp.clk_bias = _u32(_parse_int(self._text))
        elif num == 8:
            tmp.clk_drift = _parse_float(self._text)
        elif num == 9:
            tmp.tp_gran = _u32(_parse_int(self._text))


def parse_nmea(data: bytes | bytearray | str) -> GpsData:
    """Parse a block of NMEA text and return the data it carried."""
    parser = NmeaParser()
    parser.feed(data)
    return parser.data