[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "avionics"
version = "0.1.0"
description = "Flight-computer building blocks: NMEA GPS parsing, great-circle geodesy, BMP280/BME280 compensation and paged I2C EEPROM storage"
requires-python = ">=3.10"
dependencies = []
keywords = ["nmea", "gps", "bmp280", "bme280", "eeprom", "rocketry", "altimeter", "i2c"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["avionics"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
