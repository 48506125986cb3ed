import datetime

import pytest

from artcard.eeprom import (
    MAGIC,
    MANUFACTURING_DATA_OFFSET,
    OD_PCBA_PART_NUMBER,
    EepromError,
    ManufacturingData,
    ProductionState,
    gencrc,
    init_manufacturing_data,
    read_manufacturing_data,
    set_od_pcba_part_number,
    write_manufacturing_data,
)

SERIAL = "F00001234"
DAY = datetime.date(2022, 3, 4)


@pytest.fixture
def data():
    return init_manufacturing_data(SERIAL, DAY)


def test_gencrc_empty_is_initial_value():
    assert gencrc(b"") == 0xFF


def test_gencrc_check_value():
    assert gencrc(b"123456789") == 0xF7


def test_record_size_matches_crc_offset(data):
    assert len(data.to_bytes()) == 0xC3 + 1
    assert ManufacturingData.SIZE == 0xC3 + 1


def test_layout_offsets(data):
    raw = data.to_bytes()
    assert raw[:2] == MAGIC.to_bytes(2, "little")
    assert raw[0x03:0x03 + 9] == b"TIME CARD"
    assert raw[0x43:0x43 + 10] == b"1003066C00"
    assert raw[0x60:0x60 + 9] == SERIAL.encode()
    assert raw[0x79:0x79 + 6] == b"OROLIA"
    assert raw[0x5D] == ProductionState.MP


def test_asset_tag_truncated_like_factory_tool(data):
    raw = data.to_bytes()
    assert data.product_asset_tag == "0" * 10
    assert raw[0x6D:0x6D + 12] == b"0" * 10 + b"\0\0"


def test_crc_covers_whole_record(data):
    raw = data.to_bytes()
    assert data.crc8 == gencrc(raw[:-1])
    assert gencrc(raw) == 0


def test_init_fields(data):
    assert data.magic == MAGIC
    assert data.format_version == 3
    assert data.product_production_state is ProductionState.MP
    assert data.product_version == 5
    assert data.od_pcba_serial_number == SERIAL
    assert data.pcb_manufacturer == "JOVE"
    assert (
        data.system_manufacturing_date_year,
        data.system_manufacturing_date_month,
        data.system_manufacturing_date_day,
    ) == (DAY.year, DAY.month, DAY.day)


def test_bytes_round_trip(data):
    assert ManufacturingData.from_bytes(data.to_bytes()) == data


def test_from_bytes_wrong_length():
    with pytest.raises(EepromError):
        ManufacturingData.from_bytes(b"\0" * 10)


def test_file_round_trip(tmp_path, data):
    path = tmp_path / "eeprom"
    write_manufacturing_data(path, data)
    content = path.read_bytes()
    assert content[:MANUFACTURING_DATA_OFFSET] == bytes(MANUFACTURING_DATA_OFFSET)
    assert content[MANUFACTURING_DATA_OFFSET:] == data.to_bytes()
    assert read_manufacturing_data(path) == data


def test_read_short_file_raises(tmp_path):
    path = tmp_path / "eeprom"
    path.write_bytes(b"\0" * 100)
    with pytest.raises(EepromError):
        read_manufacturing_data(path)


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(EepromError):
        read_manufacturing_data(tmp_path / "missing")


def test_set_od_pcba_part_number():
    record = ManufacturingData(od_pcba_part_number="ABC")
    set_od_pcba_part_number(record)
    assert record.od_pcba_part_number == OD_PCBA_PART_NUMBER


def test_describe_mentions_fields(data):
    text = data.describe()
    assert f"Product SN: {SERIAL}" in text
    assert f"CRC8: 0x{data.crc8:x}" in text
    assert "System manufacturer date: 4-3-2022" in text