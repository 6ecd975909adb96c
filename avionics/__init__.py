"""Flight-computer building blocks: NMEA GPS parsing, geodesy, barometer compensation and EEPROM storage."""

__version__ = "0.1.0"
__all__ = ["gps_types", "geo", "nmea", "bmp280", "eeprom"]