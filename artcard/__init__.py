"""Manufacturing EEPROM tools and an oscillatord monitoring client for ART time cards."""

__version__ = "0.1.0"