# artcard

Utilities for ART time cards:

- writing and reading the manufacturing data block kept in the card's EEPROM
  (`artcard.eeprom`, `artcard.formatter`),
- talking to a running `oscillatord` through its JSON monitoring socket
  (`artcard.monitoring_client`).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Commands

All commands return 0 on success and 1 on failure.

### art-eeprom-format

Builds a fresh manufacturing data block, writes it to an EEPROM file, then
reads it back and compares it with what was written.

```
art-eeprom-format -p /path/to/eeprom -s F00000001
```

- `-p PATH`: the EEPROM file to write.
- `-s SERIAL_NUMBER`: an `F` followed by eight digits; dashes are removed
  before checking.
- `-h`: print help.

The block is written at offset 512 and ends with a CRC-8 checksum
(polynomial 0x31, initial value 0xFF). The manufacturing date is today's
date.

### art-eeprom-reformat

Sets the OD PCBA part number of an existing card's block to `1003066C00`,
keeping every other field, and checks the change by reading it back. It
takes the name of the card under `/sys/class/timecard`:

```
art-eeprom-reformat ocp0
```

The EEPROM file is looked up in the card's `i2c` directory, in the device
entry whose name ends with `-0050` after its first one or two characters.

### art-monitoring-client

Connects to the monitoring socket of `oscillatord`, sends a request, and
logs the raw JSON answer followed by a report of the sections it contains
(disciplining, oscillator, clock, GNSS, disciplining parameters and the
temperature table).

```
art-monitoring-client -p 2958
art-monitoring-client -a 127.0.0.1 -p 2958 -r calibration
```

- `-a ADDRESS`: address to connect to; the local host by default.
- `-p PORT`: port of the monitoring socket (required).
- `-r REQUEST`: one of `calibration`, `gnss_start`, `gnss_stop`,
  `gnss_soft`, `gnss_hard`, `gnss_cold`, `read_eeprom`, `save_eeprom`,
  `fake_holdover_start`, `fake_holdover_stop`, `mro_coarse_inc`,
  `mro_coarse_dec`. Without it, a plain status request is sent.
- `-h`: print help.

## Library use

```python
import datetime

from artcard.eeprom import (
    init_manufacturing_data,
    read_manufacturing_data,
    write_manufacturing_data,
)

data = init_manufacturing_data("F00000001", datetime.date.today())
write_manufacturing_data("eeprom.bin", data)
assert read_manufacturing_data("eeprom.bin") == data
```

- `artcard.eeprom`: `ManufacturingData` (with `to_bytes()`,
  `from_bytes()` and `describe()`), `ProductionState`, `gencrc()`,
  `init_manufacturing_data()`, `set_od_pcba_part_number()`,
  `write_manufacturing_data()`, `read_manufacturing_data()`; errors are
  raised as `EepromError`.
- `artcard.formatter`: `validate_serial()` returns the serial without
  dashes or raises `InvalidSerialError`; `detect_eeprom_path()` returns the
  EEPROM path of a card directory or `None`.
- `artcard.monitoring_client`: `Request`, `parse_request()`, `connect()`,
  `send_request()` and `describe_response()`; errors are raised as
  `MonitoringError`.

## What this package does not do

It does not read or write the disciplining configuration or the
temperature table stored on the card, and it does not discipline the
oscillator: it only sends requests to an `oscillatord` that is already
running and reports its answers.