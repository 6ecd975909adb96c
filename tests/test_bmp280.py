import struct

import pytest

from avionics.bmp280 import (
    BME280_CHIP_ID,
    BMP280,
    BMP280_CHIP_ID,
    I2C_ADDRESS_0,
    I2C_ADDRESS_1,
    REG_CONFIG,
    REG_CTRL,
    REG_CTRL_HUM,
    REG_RESET,
    REG_STATUS,
    RESET_VALUE,
    BMP280Error,
    Calibration,
    Filter,
    Mode,
    Oversampling,
    Params,
    StandbyTime,
    altitude,
    compensate_humidity,
    compensate_pressure,
    compensate_temperature,
)

DATASHEET = Calibration(
    t1=27504, t2=26435, t3=-1000,
    p1=36477, p2=-10685, p3=3024, p4=2855, p5=140,
    p6=-7, p7=15500, p8=-14600, p9=6000,
)
ADC_T = 519888
ADC_P = 415148


class FakeBus:
    def __init__(self, chip_id=BMP280_CHIP_ID, fail=False):
        self.memory = bytearray(256)
        self.memory[0xD0] = chip_id
        self.writes = []
        self.fail = fail
        self.addresses = set()

    def read(self, address, register, length):
        if self.fail:
            raise OSError("bus error")
        self.addresses.add(address)
        return bytes(self.memory[register:register + length])

    def write(self, address, register, data):
        if self.fail:
            raise OSError("bus error")
        self.addresses.add(address)
        self.writes.append((register, bytes(data)))
        self.memory[register:register + len(data)] = data

    def load_calibration(self, cal):
        self.memory[0x88:0x88 + 24] = struct.pack(
            "<HhhHhhhhhhhh",
            cal.t1, cal.t2, cal.t3, cal.p1, cal.p2, cal.p3,
            cal.p4, cal.p5, cal.p6, cal.p7, cal.p8, cal.p9,
        )

    def load_adc(self, adc_p, adc_t, adc_h=0):
        self.memory[0xF7:0xFF] = bytes([
            adc_p >> 12, (adc_p >> 4) & 0xFF, (adc_p & 0xF) << 4,
            adc_t >> 12, (adc_t >> 4) & 0xFF, (adc_t & 0xF) << 4,
            adc_h >> 8, adc_h & 0xFF,
        ])

    def last_write(self, register):
        return [data for reg, data in self.writes if reg == register][-1]


def ready_sensor(chip_id=BMP280_CHIP_ID, params=None):
    bus = FakeBus(chip_id)
    bus.load_calibration(DATASHEET)
    sensor = BMP280(bus, I2C_ADDRESS_0)
    sensor.init(params)
    return bus, sensor


def test_temperature_datasheet_example():
    temperature, fine = compensate_temperature(DATASHEET, ADC_T)
    assert fine == 128422
    assert temperature == 2508


def test_pressure_datasheet_example_is_near_reference():
    _, fine = compensate_temperature(DATASHEET, ADC_T)
    pressure = compensate_pressure(DATASHEET, ADC_P, fine)
    assert pressure / 256 == pytest.approx(100653.3, abs=0.5)


def test_pressure_zero_divisor_returns_zero():
    cal = Calibration(p1=0)
    assert compensate_pressure(cal, ADC_P, 128422) == 0


@pytest.mark.parametrize("adc_hum", [0, 1000, 30000, 65535])
@pytest.mark.parametrize("fine", [-50000, 0, 128422])
def test_humidity_is_clamped(adc_hum, fine):
    cal = Calibration(h1=75, h2=362, h3=0, h4=315, h5=50, h6=30)
    value = compensate_humidity(cal, adc_hum, fine)
    assert 0 <= value <= 419430400 >> 12


def test_altitude_at_reference_is_zero():
    assert altitude(101325.0, 101325.0) == 0.0


def test_altitude_increases_as_pressure_drops():
    low = altitude(101325.0, 100000.0)
    high = altitude(101325.0, 90000.0)
    assert 0 < low < high


def test_init_writes_reset_and_reads_calibration():
    bus, sensor = ready_sensor()
    assert bus.last_write(REG_RESET) == bytes([RESET_VALUE])
    assert sensor.calibration == DATASHEET
    assert sensor.chip_id == BMP280_CHIP_ID
    assert bus.addresses == {I2C_ADDRESS_0}


def test_init_configures_registers_from_params():
    params = Params(
        mode=Mode.NORMAL,
        filter=Filter.X16,
        oversampling_pressure=Oversampling.ULTRA_HIGH_RES,
        oversampling_temperature=Oversampling.LOW_POWER,
        standby=StandbyTime.MS_4000,
    )
    bus, _ = ready_sensor(params=params)
    config = bus.last_write(REG_CONFIG)[0]
    ctrl = bus.last_write(REG_CTRL)[0]
    assert config >> 5 == StandbyTime.MS_4000
    assert (config >> 2) & 0b111 == Filter.X16
    assert ctrl >> 5 == Oversampling.LOW_POWER
    assert (ctrl >> 2) & 0b111 == Oversampling.ULTRA_HIGH_RES
    assert ctrl & 0b11 == Mode.NORMAL
    assert all(reg != REG_CTRL_HUM for reg, _ in bus.writes)


def test_default_params():
    params = Params()
    assert params.mode == Mode.NORMAL
    assert params.filter == Filter.X2
    assert params.oversampling_pressure == Oversampling.STANDARD
    assert params.standby == StandbyTime.MS_250


def test_forced_mode_starts_asleep_and_can_be_triggered():
    params = Params(mode=Mode.FORCED)
    bus, sensor = ready_sensor(params=params)
    assert params.mode == Mode.SLEEP
    assert bus.last_write(REG_CTRL)[0] & 0b11 == Mode.SLEEP
    sensor.force_measurement()
    ctrl = bus.last_write(REG_CTRL)[0]
    assert ctrl & 0b11 == Mode.FORCED
    assert ctrl >> 2 == bus.writes[-2][1][0] >> 2 if bus.writes[-2][0] == REG_CTRL else True


def test_bme280_writes_humidity_control_before_ctrl():
    bus, sensor = ready_sensor(chip_id=BME280_CHIP_ID)
    registers = [reg for reg, _ in bus.writes]
    assert sensor.is_bme280
    assert registers.index(REG_CTRL_HUM) < registers.index(REG_CTRL)
    assert bus.last_write(REG_CTRL_HUM)[0] == Oversampling.STANDARD


def test_is_measuring_follows_status_bit():
    bus, sensor = ready_sensor()
    assert sensor.is_measuring() is False
    bus.memory[REG_STATUS] = 1 << 3
    assert sensor.is_measuring() is True


def test_read_fixed_matches_compensation():
    bus, sensor = ready_sensor()
    bus.load_adc(ADC_P, ADC_T)
    reading = sensor.read_fixed()
    temperature, fine = compensate_temperature(DATASHEET, ADC_T)
    assert reading.temperature == temperature
    assert reading.pressure == compensate_pressure(DATASHEET, ADC_P, fine)
    assert reading.humidity is None


def test_read_float_scales_fixed_values():
    bus, sensor = ready_sensor()
    bus.load_adc(ADC_P, ADC_T)
    fixed = sensor.read_fixed()
    real = sensor.read_float()
    assert real.temperature == pytest.approx(fixed.temperature / 100)
    assert real.pressure == pytest.approx(fixed.pressure / 256)


def test_bmp280_reports_zero_humidity_when_requested():
    bus, sensor = ready_sensor()
    bus.load_adc(ADC_P, ADC_T, 30000)
    assert sensor.read_fixed(humidity=True).humidity == 0
    assert sensor.read_float(humidity=True).humidity == 0.0


def test_bme280_humidity_is_a_percentage():
    bus, sensor = ready_sensor(chip_id=BME280_CHIP_ID)
    bus.load_adc(ADC_P, ADC_T, 30000)
    reading = sensor.read_float(humidity=True)
    assert 0.0 <= reading.humidity <= 100.0


def test_invalid_address_is_rejected():
    bus = FakeBus()
    with pytest.raises(BMP280Error):
        BMP280(bus, 0x42).init()
    assert bus.writes == []


def test_unknown_chip_id_is_rejected():
    bus = FakeBus(chip_id=0x11)
    with pytest.raises(BMP280Error):
        BMP280(bus, I2C_ADDRESS_1).init()
    assert bus.writes == []


def test_bus_failure_raises():
    bus = FakeBus(fail=True)
    sensor = BMP280(bus, I2C_ADDRESS_0)
    with pytest.raises(BMP280Error):
        sensor.init()
    with pytest.raises(BMP280Error):
        sensor.read_fixed()
    with pytest.raises(BMP280Error):
        sensor.force_measurement()


def test_short_read_raises():
    class ShortBus(FakeBus):
        def read(self, address, register, length):
            return super().read(address, register, length)[:-1]

    sensor = BMP280(ShortBus(), I2C_ADDRESS_0)
    with pytest.raises(BMP280Error):
        sensor.read_fixed()