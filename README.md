# avionics

Pure-Python building blocks for a small rocket flight computer.

- **NMEA GPS parsing** (`avionics.nmea`): a streaming `NmeaParser` that
  accepts raw receiver bytes in any chunking, checks the checksum of each
  sentence and keeps GGA, GSA, GSV and RMC data up to date in a `GpsData`
  record (`avionics.gps_types`). A sentence's values are taken over only when
  its carriage return arrives and its checksum matches. For a whole buffer at
  once, use `parse_nmea`. Per-satellite GSV details and u-blox `$PUBX` TIME
  sentences are off by default; set `satellite_details` or `pubx` to `True`
  on a parser to enable them.
- **Geodesy helpers** (`avionics.geo`): haversine `distance` in metres,
  initial `bearing` in degrees from north, `distance_bearing` for both, and
  `to_speed` to convert knots to any `SpeedUnit`.
- **BMP280 / BME280 barometer** (`avionics.bmp280`): the datasheet's integer
  compensation (`compensate_temperature`, `compensate_pressure`,
  `compensate_humidity`), a `BMP280` driver that probes, resets, calibrates
  and configures the sensor through a bus object you pass in, and `altitude`
  for height above a reference pressure. Failures raise `BMP280Error`.
- **Paged I2C EEPROM** (`avionics.eeprom`): `Eeprom` splits writes and reads
  at 256-byte page boundaries, erases pages to `0xFF`, and stores 32-bit
  floats with `write_float` / `read_float`.

## Installation

```
pip install .
```

## Examples

Parsing GPS sentences:

```python
from avionics.nmea import parse_nmea

data = parse_nmea(received_bytes)
print(data.latitude, data.longitude, data.altitude, data.is_valid)
```

Streaming input, with a callback after each sentence:

```python
from avionics.nmea import NmeaParser

parser = NmeaParser(on_statement=lambda statement: print(statement))
for chunk in serial_chunks:
    parser.feed(chunk)
print(parser.data.speed, parser.data.course)
```

The callback receives a `Statement` value, or `Statement.CHECKSUM_FAIL`
when the checksum did not match.

Distance and speed:

```python
from avionics.geo import distance_bearing, to_speed, SpeedUnit

metres, degrees = distance_bearing(40.0, 49.0, 40.1, 49.1)
kmh = to_speed(12.5, SpeedUnit.KPH)
```

Barometer:

```python
from avionics.bmp280 import BMP280, Params, altitude

sensor = BMP280(bus)          # default address 0x76
sensor.init(Params())
reading = sensor.read_float(humidity=True)
height = altitude(101325.0, reading.pressure)
```

EEPROM:

```python
from avionics.eeprom import Eeprom

memory = Eeprom(bus)          # default address 0x50
memory.write_float(0, 0, 123.5)
value = memory.read_float(0, 0)
```

## Bus objects

`BMP280` and `Eeprom` take a bus object with two methods:

- `read(address, register, length) -> bytes`
- `write(address, register, data) -> None`

`address` is the 7-bit device address. The same code therefore runs against
real hardware, a simulator or a test double.

## What this package does not do

- It contains no I2C or serial drivers; you supply the bus object and feed
  the GPS bytes yourself.
- It does not drive buzzers, LEDs or other status outputs, and has no
  flight-control loop or command-line program.

## Running the tests

```
pip install .[test]
pytest
```