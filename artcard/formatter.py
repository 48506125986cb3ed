"""Commands writing factory manufacturing data to an ART card EEPROM."""

from __future__ import annotations

import getopt
import logging
import os
import string
import sys
from pathlib import Path

from artcard.eeprom import (
    OD_PCBA_PART_NUMBER,
    EepromError,
    init_manufacturing_data,
    read_manufacturing_data,
    set_od_pcba_part_number,
    write_manufacturing_data,
)

logger = logging.getLogger(__name__)

TIMECARD_ROOT = Path("/sys/class/timecard")
_EEPROM_SUFFIX = "-0050"
_LOG_FORMAT = "%(message)s"

_FORMAT_HELP = "\n".join(
    [
        "art-eeprom-format: Format Manufacturing data in ART Card's EEPROM",
        "Usage: art-eeprom-format -p PATH -s SERIAL_NUMBER",
        "Parameters:",
        "- -p PATH: path of the file/EEPROM data should be written from",
        "- -s SERIAL_NUMBER: Serial number that should be written within data."
        "Serial must start with an F followed by 8 numerical characters",
    ]
)


class InvalidSerialError(ValueError):
    """Raised when a serial number does not follow the F + 8 digits form."""


def validate_serial(serial: str | None) -> str:
    """Return the serial without dashes, or raise InvalidSerialError."""
    if not serial:
        raise InvalidSerialError("No serial number provided")
    cleaned = serial.replace("-", "")
    if not cleaned.startswith("F"):
        raise InvalidSerialError("First letter of the serial must be an F")
    if len(cleaned) != 9:
        raise InvalidSerialError("Serial must contain exactly 9 characters without '-'")
    for position, char in enumerate(cleaned[1:], start=2):
        if char not in string.digits:
            raise InvalidSerialError(f"character {position} is not a digit")
    return cleaned


def detect_eeprom_path(ocp_path: str | os.PathLike) -> Path | None:
    """Locate the EEPROM file under the i2c directory of a timecard."""
    dirpath = Path(ocp_path) / "i2c"
    try:
        entries = sorted(os.listdir(dirpath))
    except OSError:
        logger.error("Unable to open the directory: %s", dirpath)
        return None
    found = None
    for name in entries:
        if name[1:] == _EEPROM_SUFFIX or name[2:] == _EEPROM_SUFFIX:
            found = dirpath / name / "eeprom"
            logger.info("\t-eeprom path found at: '%s'", found)
    return found


def format_main(argv=None) -> int:
    """Write fresh manufacturing data with the given serial number."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, _ = getopt.getopt(args, "p:s:h")
    except getopt.GetoptError as exc:
        if exc.opt == "p":
            print("Option -p requires path to eeprom.", file=sys.stderr)
        else:
            print(exc.msg, file=sys.stderr)
        return 1

    path = None
    serial_number = None
    for opt, value in opts:
        if opt == "-p":
            path = value
        elif opt == "-s":
            serial_number = value
        elif opt == "-h":
            print(_FORMAT_HELP)
            return 0

    if not path:
        print("Please provide path to EEPROM file to write")
        return 1
    try:
        serial_number = validate_serial(serial_number)
    except InvalidSerialError as exc:
        print(exc)
        print("Serial number is not valid")
        return 1

    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
    logger.info("Writing manufacturing data to %s...", path)
    data = init_manufacturing_data(serial_number)
    logger.debug("%s", data.describe())

    try:
        write_manufacturing_data(path, data)
    except EepromError as exc:
        logger.error("Error writing eeprom data: %s", exc)
        return 1

    logger.info("Reading back data just written...")
    try:
        data_read = read_manufacturing_data(path)
    except EepromError as exc:
        logger.error("Error writing data to eeprom: %s", exc)
        return 1
    if data_read.to_bytes() != data.to_bytes():
        logger.error("Error writing data to eeprom")
        return 1
    logger.info("Data correctly written")
    return 0


def reformat_main(argv=None) -> int:
    """Update the oscillator PCBA part number of a timecard's EEPROM."""
    args = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
    if len(args) != 1:
        logger.error("Wrong input, please provide an valid ocp !")
        return 1

    logger.info("Checking input:")
    ocp_path = TIMECARD_ROOT / args[0]
    logger.info('\t-ocp path is: "%s", checking...', ocp_path)
    if not ocp_path.exists():
        logger.error("\t-ocp path doesn't exists !")
        return 1
    logger.info("\t-ocp path exists !")

    logger.info("Checking eeprom:")
    eeprom_path = detect_eeprom_path(ocp_path)
    if eeprom_path is None:
        logger.error("\t-eeprom_path not found !")
        return 1

    logger.info("Reading current eeprom data ...")
    try:
        data = read_manufacturing_data(eeprom_path)
    except EepromError as exc:
        logger.error("%s", exc)
        return 1
    set_od_pcba_part_number(data)

    logger.info("Writing manufacturing data to %s...", eeprom_path)
    try:
        write_manufacturing_data(eeprom_path, data)
    except EepromError as exc:
        logger.error("Error writing eeprom data: %s", exc)
        return 1

    logger.info("Reading eeprom data after write...")
    try:
        data_read = read_manufacturing_data(eeprom_path)
    except EepromError as exc:
        logger.error("%s", exc)
        return 1
    if data_read.od_pcba_part_number != OD_PCBA_PART_NUMBER:
        logger.error(
            "Invalid write, Please make sure to have write access on factory eeprom !"
        )
        return 1
    logger.info("EEPROM successfully reformated !")
    return 0