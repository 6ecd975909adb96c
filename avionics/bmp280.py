"""Driver for the Bosch BMP280 / BME280 pressure, temperature and humidity sensors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol

I2C_ADDRESS_0 = 0x76
"""Address when the SDO pin is low."""
I2C_ADDRESS_1 = 0x77
"""Address when the SDO pin is high."""

BMP280_CHIP_ID = 0x58
BME280_CHIP_ID = 0x60

REG_PRESSURE = 0xF7
REG_CONFIG = 0xF5
REG_CTRL = 0xF4
REG_STATUS = 0xF3
REG_CTRL_HUM = 0xF2
REG_RESET = 0xE0
REG_ID = 0xD0
REG_CALIB = 0x88

RESET_VALUE = 0xB6

_HUMIDITY_MAX = 419430400


class Mode(IntEnum):
    """Operating mode: forced measures on request, normal measures continuously."""

    SLEEP = 0
    FORCED = 1
    NORMAL = 3


class Filter(IntEnum):
    """IIR filter coefficient."""

    OFF = 0
    X2 = 1
    X4 = 2
    X8 = 3
    X16 = 4


class Oversampling(IntEnum):
    """Oversampling setting for one measurement."""

    SKIPPED = 0
    ULTRA_LOW_POWER = 1
    LOW_POWER = 2
    STANDARD = 3
    HIGH_RES = 4
    ULTRA_HIGH_RES = 5


class StandbyTime(IntEnum):
    """Stand-by time between measurements in normal mode."""

    MS_0_5 = 0
    MS_62_5 = 1
    MS_125 = 2
    MS_250 = 3
    MS_500 = 4
    MS_1000 = 5
    MS_2000 = 6
    MS_4000 = 7


@dataclass
class Params:
    """Measurement configuration written to the sensor by :meth:`BMP280.init`."""

    mode: Mode = Mode.NORMAL
    filter: Filter = Filter.X2
    oversampling_pressure: Oversampling = Oversampling.STANDARD
    oversampling_temperature: Oversampling = Oversampling.STANDARD
    oversampling_humidity: Oversampling = Oversampling.STANDARD
    standby: StandbyTime = StandbyTime.MS_250


@dataclass
class Calibration:
    """Factory trimming constants read from the sensor."""

    t1: int = 0
    t2: int = 0
    t3: int = 0
    p1: int = 0
    p2: int = 0
    p3: int = 0
    p4: int = 0
    p5: int = 0
    p6: int = 0
    p7: int = 0
    p8: int = 0
    p9: int = 0
    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0


@dataclass(frozen=True)
class Reading:
    """One compensated measurement.

    ``humidity`` is ``None`` when it was not requested.
    """

    temperature: float
    pressure: float
    humidity: float | None = None


class BMP280Error(Exception):
    """Raised when the sensor cannot be reached or does not behave as expected."""


class I2CBus(Protocol):
    """Register access on an I2C bus, with 7-bit device addresses."""

    def read(self, address: int, register: int, length: int) -> bytes: ...

    def write(self, address: int, register: int, data: bytes) -> None: ...


def _i32(value: int) -> int:
    return ((value + (1 << 31)) & 0xFFFFFFFF) - (1 << 31)


def _i64(value: int) -> int:
    return ((value + (1 << 63)) & 0xFFFFFFFFFFFFFFFF) - (1 << 63)


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def compensate_temperature(calibration: Calibration, adc_temp: int) -> tuple[int, int]:
    """Return ``(temperature, fine_temp)``; temperature is in hundredths of °C."""
    c = calibration
    var1 = _i32(_i32((adc_temp >> 3) - (c.t1 << 1)) * c.t2) >> 11
    diff = _i32((adc_temp >> 4) - c.t1)
    var2 = _i32((_i32(diff * diff) >> 12) * c.t3) >> 14
    fine_temp = _i32(var1 + var2)
    return _i32(fine_temp * 5 + 128) >> 8, fine_temp


def compensate_pressure(calibration: Calibration, adc_press: int, fine_temp: int) -> int:
    """Return pressure in Pa as a 24.8 fixed-point number."""
    c = calibration
    var1 = _i64(fine_temp - 128000)
    var2 = _i64(var1 * var1 * c.p6)
    var2 = _i64(var2 + _i64(_i64(var1 * c.p5) << 17))
    var2 = _i64(var2 + _i64(c.p4 << 35))
    var1 = _i64((_i64(var1 * var1 * c.p3) >> 8) + _i64(_i64(var1 * c.p2) << 12))
    var1 = _i64(_i64(((1 << 47) + var1) * c.p1) >> 33)

    if var1 == 0:
        return 0

    p = _i64(1048576 - adc_press)
    p = _trunc_div(_i64(_i64(_i64(p << 31) - var2) * 3125), var1)
    var1 = _i64(c.p9 * (p >> 13) * (p >> 13)) >> 25
    var2 = _i64(c.p8 * p) >> 19
    p = _i64((_i64(p + var1 + var2) >> 8) + (c.p7 << 4))
    return p & 0xFFFFFFFF


def compensate_humidity(calibration: Calibration, adc_hum: int, fine_temp: int) -> int:
    """Return relative humidity in percent as a 22.10 fixed-point number."""
    c = calibration
    v = _i32(fine_temp - 76800)
    left = _i32(_i32(_i32(adc_hum << 14) - _i32(c.h4 << 20) - _i32(c.h5 * v)) + 16384) >> 15
    inner = _i32(
        (_i32(v * c.h6) >> 10) * _i32((_i32(v * c.h3) >> 11) + 32768)
    ) >> 10
    right = _i32(_i32(_i32(inner + 2097152) * c.h2) + 8192) >> 14
    v = _i32(left * right)
    v = _i32(v - (_i32((_i32((v >> 15) * (v >> 15)) >> 7) * c.h1) >> 4))
    v = min(max(v, 0), _HUMIDITY_MAX)
    return v >> 12


def altitude(reference_pressure: float, pressure: float) -> float:
    """Return the altitude in metres of ``pressure`` above ``reference_pressure``."""
    return 44330.0 * (1.0 - (pressure / reference_pressure) ** (1.0 / 5.255))


class BMP280:
    """A BMP280 or BME280 sensor on an I2C bus."""

    def __init__(self, bus: I2CBus, address: int = I2C_ADDRESS_0) -> None:
        self.bus = bus
        self.address = address
        self.chip_id = 0
        self.calibration = Calibration()
        self.params = Params()

    @property
    def is_bme280(self) -> bool:
        """Whether the probed chip is a BME280, which also measures humidity."""
        return self.chip_id == BME280_CHIP_ID

    # -- register access ------------------------------------------------

    def _read(self, register: int, length: int) -> bytes:
        try:
            data = bytes(self.bus.read(self.address, register, length))
        except OSError as exc:
            raise BMP280Error(f"reading register 0x{register:02X} failed") from exc
        if len(data) != length:
            raise BMP280Error(
                f"short read from register 0x{register:02X}: {len(data)} of {length} bytes"
            )
        return data

    def _read_u8(self, register: int) -> int:
        return self._read(register, 1)[0]

    def _read_s8(self, register: int) -> int:
        return int.from_bytes(self._read(register, 1), "little", signed=True)

    def _read_u16(self, register: int) -> int:
        return int.from_bytes(self._read(register, 2), "little")

    def _read_s16(self, register: int) -> int:
        return int.from_bytes(self._read(register, 2), "little", signed=True)

    def _write(self, register: int, value: int) -> None:
        try:
            self.bus.write(self.address, register, bytes([value & 0xFF]))
        except OSError as exc:
            raise BMP280Error(f"writing register 0x{register:02X} failed") from exc

    # -- setup ----------------------------------------------------------

    def _read_calibration(self) -> Calibration:
        unsigned = {"t1": 0x88, "p1": 0x8E}
        signed = {
            "t2": 0x8A, "t3": 0x8C, "p2": 0x90, "p3": 0x92, "p4": 0x94,
            "p5": 0x96, "p6": 0x98, "p7": 0x9A, "p8": 0x9C, "p9": 0x9E,
        }
        values = {name: self._read_u16(reg) for name, reg in unsigned.items()}
        values.update({name: self._read_s16(reg) for name, reg in signed.items()})
        return Calibration(**values)

    def _read_humidity_calibration(self, calibration: Calibration) -> None:
        calibration.h1 = self._read_u8(0xA1)
        calibration.h2 = self._read_s16(0xE1)
        calibration.h3 = self._read_u8(0xE3)
        h4 = self._read_u16(0xE4)
        h5 = self._read_u16(0xE5)
        calibration.h6 = self._read_s8(0xE7)
        calibration.h4 = (h4 & 0x00FF) << 4 | (h4 & 0x0F00) >> 8
        calibration.h5 = h5 >> 4

    def init(self, params: Params | None = None) -> None:
        """Probe, soft-reset, calibrate and configure the sensor.

        A forced-mode ``params`` is switched to sleep mode, the initial state
        for forced measurements. May be called again to reset the device.
        """
        if params is None:
            params = Params()
        if self.address not in (I2C_ADDRESS_0, I2C_ADDRESS_1):
            raise BMP280Error(f"invalid sensor address 0x{self.address:02X}")

        self.chip_id = self._read_u8(REG_ID)
        if self.chip_id not in (BMP280_CHIP_ID, BME280_CHIP_ID):
            raise BMP280Error(f"unexpected chip id 0x{self.chip_id:02X}")

        self._write(REG_RESET, RESET_VALUE)

        # Wait until the NVM data has been copied.
        while True:
            try:
                status = self._read_u8(REG_STATUS)
            except BMP280Error:
                continue
            if status & 1 == 0:
                break

        calibration = self._read_calibration()
        if self.is_bme280:
            self._read_humidity_calibration(calibration)
        self.calibration = calibration

        self._write(REG_CONFIG, (params.standby << 5) | (params.filter << 2))

        if params.mode == Mode.FORCED:
            params.mode = Mode.SLEEP

        ctrl = (
            (params.oversampling_temperature << 5)
            | (params.oversampling_pressure << 2)
            | params.mode
        )
        if self.is_bme280:
            # Humidity control only takes effect after the next CTRL write.
            self._write(REG_CTRL_HUM, int(params.oversampling_humidity))
        self._write(REG_CTRL, ctrl)
        self.params = params

    # -- measurement ----------------------------------------------------

    def force_measurement(self) -> None:
        """Start one measurement in forced mode."""
        ctrl = self._read_u8(REG_CTRL)
        ctrl = (ctrl & ~0b11) | Mode.FORCED
        self._write(REG_CTRL, ctrl)

    def is_measuring(self) -> bool:
        """Whether a conversion is running."""
        return bool(self._read_u8(REG_STATUS) & (1 << 3))

    def read_fixed(self, humidity: bool = False) -> Reading:
        """Read integer values: °C × 100, Pa in 24.8 and %RH in 22.10 fixed point.

        Requested humidity is 0 on a BMP280, which has no humidity sensor.
        """
        with_humidity = humidity and self.is_bme280
        data = self._read(REG_PRESSURE, 8 if with_humidity else 6)

        adc_pressure = data[0] << 12 | data[1] << 4 | data[2] >> 4
        adc_temp = data[3] << 12 | data[4] << 4 | data[5] >> 4

        temperature, fine_temp = compensate_temperature(self.calibration, adc_temp)
        pressure = compensate_pressure(self.calibration, adc_pressure, fine_temp)

        hum: int | None = None
        if with_humidity:
            adc_humidity = data[6] << 8 | data[7]
            hum = compensate_humidity(self.calibration, adc_humidity, fine_temp)
        elif humidity:
            hum = 0
        return Reading(temperature, pressure, hum)

    def read_float(self, humidity: bool = False) -> Reading:
        """Read values in °C, Pa and percent relative humidity."""
        fixed = self.read_fixed(humidity)
        return Reading(
            temperature=fixed.temperature / 100,
            pressure=fixed.pressure / 256,
            humidity=None if fixed.humidity is None else fixed.humidity / 1024,
        )