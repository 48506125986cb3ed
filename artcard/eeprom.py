"""Manufacturing data kept in the read-only area of an ART card EEPROM."""

from __future__ import annotations

import dataclasses
import datetime
import enum
import logging
import os
import struct
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

MANUFACTURING_DATA_OFFSET = 2 * 256
MAGIC = 0xFBFB
OD_PCBA_PART_NUMBER = "1003066C00"

PathLike = Union[str, "os.PathLike[str]"]


class EepromError(Exception):
    """Raised when manufacturing data cannot be read, written or decoded."""


class ProductionState(enum.IntEnum):
    EVT = 0
    DVT = 1
    PVT = 2
    MP = 3


# Packed little-endian layout, in field order.
_LAYOUT = (
    ("magic", "H"),
    ("format_version", "B"),
    ("product_name", "20s"),
    ("product_part_number", "8s"),
    ("system_assembly_part_number", "12s"),
    ("fb_pcba_part_number", "12s"),
    ("fb_pcb_part_number", "12s"),
    ("od_pcba_part_number", "13s"),
    ("od_pcba_serial_number", "13s"),
    ("product_production_state", "B"),
    ("product_version", "B"),
    ("product_sub_version", "B"),
    ("product_serial_number", "13s"),
    ("product_asset_tag", "12s"),
    ("system_manufacturer", "8s"),
    ("system_manufacturing_date_year", "H"),
    ("system_manufacturing_date_month", "B"),
    ("system_manufacturing_date_day", "B"),
    ("pcb_manufacturer", "8s"),
    ("assembled_at", "8s"),
    ("local_mac_address", "12s"),
    ("extended_mac_address_base", "12s"),
    ("extended_mac_address_size", "H"),
    ("eeprom_location_on_fabric", "20s"),
    ("crc8", "B"),
)
_STRUCT = struct.Struct("<" + "".join(code for _, code in _LAYOUT))
_TEXT_FIELDS = frozenset(name for name, code in _LAYOUT if code.endswith("s"))


def gencrc(data: bytes) -> int:
    """CRC-8 with polynomial 0x31 and initial value 0xFF."""
    crc = 0xFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ 0x31) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
    return crc


@dataclass
class ManufacturingData:
    """Factory record describing an ART card."""

    magic: int = 0
    format_version: int = 0
    product_name: str = ""
    product_part_number: str = ""
    system_assembly_part_number: str = ""
    fb_pcba_part_number: str = ""
    fb_pcb_part_number: str = ""
    od_pcba_part_number: str = ""
    od_pcba_serial_number: str = ""
    product_production_state: Union[ProductionState, int] = ProductionState.EVT
    product_version: int = 0
    product_sub_version: int = 0
    product_serial_number: str = ""
    product_asset_tag: str = ""
    system_manufacturer: str = ""
    system_manufacturing_date_year: int = 0
    system_manufacturing_date_month: int = 0
    system_manufacturing_date_day: int = 0
    pcb_manufacturer: str = ""
    assembled_at: str = ""
    local_mac_address: str = ""
    extended_mac_address_base: str = ""
    extended_mac_address_size: int = 0
    eeprom_location_on_fabric: str = ""
    crc8: int = 0

    SIZE = _STRUCT.size

    def to_bytes(self) -> bytes:
        """Pack the record into its on-EEPROM binary form."""
        values = []
        for name, _ in _LAYOUT:
            value = getattr(self, name)
            if name in _TEXT_FIELDS:
                value = value.encode("latin-1")
            values.append(int(value) if isinstance(value, enum.IntEnum) else value)
        try:
            return _STRUCT.pack(*values)
        except struct.error as exc:
            raise EepromError(f"cannot pack manufacturing data: {exc}") from exc

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ManufacturingData":
        """Decode a record from its binary form."""
        if len(raw) != _STRUCT.size:
            raise EepromError(
                f"manufacturing data must be {_STRUCT.size} bytes, got {len(raw)}"
            )
        decoded = {}
        for (name, _), value in zip(_LAYOUT, _STRUCT.unpack(raw)):
            if name in _TEXT_FIELDS:
                value = value.split(b"\0", 1)[0].decode("latin-1")
            decoded[name] = value
        state = decoded["product_production_state"]
        if state in ProductionState._value2member_map_:
            decoded["product_production_state"] = ProductionState(state)
        return cls(**decoded)

    def describe(self) -> str:
        """Human-readable dump of every field."""
        lines = [
            "EEPROM data is:",
            f"Magic: 0x{self.magic:x}",
            f"Format version: {self.format_version}",
            f"Product Name: {self.product_name}",
            f"Product PN: {self.product_part_number}",
            f"System assembly PN: {self.system_assembly_part_number}",
            f"FB PCBA PN: {self.fb_pcba_part_number}",
            f"FB PCB PN: {self.fb_pcb_part_number}",
            f"OD PCBA PN: {self.od_pcba_part_number}",
            f"OD PCVA SN: {self.od_pcba_serial_number}",
            f"Product Production state: {int(self.product_production_state)}",
            f"Product version: {self.product_version}",
            f"Product subversion: {self.product_sub_version}",
            f"Product SN: {self.product_serial_number}",
            f"Product asset tag: {self.product_asset_tag}",
            f"System manufacturer: {self.system_manufacturer}",
            "System manufacturer date: "
            f"{self.system_manufacturing_date_day}-"
            f"{self.system_manufacturing_date_month}-"
            f"{self.system_manufacturing_date_year}",
            f"PCB Manufacturer: {self.pcb_manufacturer}",
            f"Assembled at: {self.assembled_at}",
            f"Local MAC address: {self.local_mac_address}",
            f"Extended MAC address: {self.extended_mac_address_base}",
            f"Extended MAC address size: {self.extended_mac_address_size}",
            f"EEPROM Location on fabric: {self.eeprom_location_on_fabric}",
            f"CRC8: 0x{self.crc8:x}",
        ]
        return "\n".join(lines)


def init_manufacturing_data(
    serial_number: str, today: datetime.date | None = None
) -> ManufacturingData:
    """Build the factory record for a card with the given serial number."""
    today = today or datetime.date.today()
    data = ManufacturingData(
        magic=MAGIC,
        format_version=3,
        product_production_state=ProductionState.MP,
        product_version=5,
        product_sub_version=0,
        product_name="TIME CARD",
        system_assembly_part_number="19002225",
        fb_pcba_part_number="13200014402",
        fb_pcb_part_number="13100010902",
        od_pcba_part_number=OD_PCBA_PART_NUMBER,
        od_pcba_serial_number=serial_number[:12],
        product_serial_number=serial_number[:13],
        system_manufacturer="OROLIA",
        assembled_at="ASTEEL",
        product_part_number="00000000",
        product_asset_tag="000000000000"[:10],
        local_mac_address="000000000000",
        extended_mac_address_base="000000000000",
        extended_mac_address_size=0,
        eeprom_location_on_fabric="TIME CARD",
        pcb_manufacturer="JOVE",
        system_manufacturing_date_day=today.day,
        system_manufacturing_date_month=today.month,
        system_manufacturing_date_year=today.year,
    )
    return dataclasses.replace(data, crc8=gencrc(data.to_bytes()[:-1]))


def set_od_pcba_part_number(data: ManufacturingData) -> ManufacturingData:
    """Set the oscillator board PCBA part number to the current one, in place."""
    data.od_pcba_part_number = OD_PCBA_PART_NUMBER
    return data


def write_manufacturing_data(path: PathLike, data: ManufacturingData) -> None:
    """Write the record at its fixed offset in the EEPROM file."""
    payload = data.to_bytes()
    try:
        with open(path, "wb") as fh:
            fh.seek(MANUFACTURING_DATA_OFFSET)
            written = fh.write(payload)
    except OSError as exc:
        raise EepromError(f"cannot write manufacturing data to {path}: {exc}") from exc
    if written != len(payload):
        raise EepromError("did not write all bytes of the manufacturing data")


def read_manufacturing_data(path: PathLike) -> ManufacturingData:
    """Read the record from its fixed offset in the EEPROM file."""
    try:
        with open(path, "rb") as fh:
            fh.seek(MANUFACTURING_DATA_OFFSET)
            raw = fh.read(ManufacturingData.SIZE)
    except OSError as exc:
        raise EepromError(f"could not open file at {path}: {exc}") from exc
    if len(raw) != ManufacturingData.SIZE:
        raise EepromError(f"could not read eeprom data from {path}")
    data = ManufacturingData.from_bytes(raw)
    logger.debug("%s", data.describe())
    return data