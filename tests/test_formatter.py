import pytest

from artcard import formatter
from artcard.eeprom import (
    OD_PCBA_PART_NUMBER,
    init_manufacturing_data,
    read_manufacturing_data,
    write_manufacturing_data,
)
from artcard.formatter import (
    InvalidSerialError,
    detect_eeprom_path,
    format_main,
    reformat_main,
    validate_serial,
)

SERIAL = "F00001234"


def test_validate_serial_strips_dashes():
    assert validate_serial("F-0000-1234") == SERIAL
    assert validate_serial(SERIAL) == SERIAL


@pytest.mark.parametrize(
    "serial",
    [None, "", "G00001234", "F0000123", "F000012345", "F0000123A"],
)
def test_validate_serial_rejects(serial):
    with pytest.raises(InvalidSerialError):
        validate_serial(serial)


def test_validate_serial_reports_position():
    with pytest.raises(InvalidSerialError, match="character 9"):
        validate_serial("F0000123X")


@pytest.mark.parametrize("name", ["3-0050", "13-0050"])
def test_detect_eeprom_path(tmp_path, name):
    (tmp_path / "i2c" / name).mkdir(parents=True)
    (tmp_path / "i2c" / "other").mkdir()
    assert detect_eeprom_path(tmp_path) == tmp_path / "i2c" / name / "eeprom"


def test_detect_eeprom_path_missing_dir(tmp_path):
    assert detect_eeprom_path(tmp_path) is None


def test_detect_eeprom_path_no_match(tmp_path):
    (tmp_path / "i2c" / "123-0050").mkdir(parents=True)
    assert detect_eeprom_path(tmp_path) is None


def test_format_main_writes_data(tmp_path):
    path = tmp_path / "eeprom"
    assert format_main(["-p", str(path), "-s", "F-0000-1234"]) == 0
    data = read_manufacturing_data(path)
    assert data.product_serial_number == SERIAL
    assert data.od_pcba_part_number == OD_PCBA_PART_NUMBER


def test_format_main_requires_path():
    assert format_main(["-s", SERIAL]) == 1


def test_format_main_rejects_bad_serial(tmp_path):
    path = tmp_path / "eeprom"
    assert format_main(["-p", str(path), "-s", "X1"]) == 1
    assert not path.exists()


def test_format_main_help(capsys):
    assert format_main(["-h"]) == 0
    assert "Usage: art-eeprom-format" in capsys.readouterr().out


def test_format_main_missing_option_value():
    assert format_main(["-p"]) == 1


def test_reformat_main_updates_part_number(tmp_path, monkeypatch):
    eeprom_dir = tmp_path / "ocp0" / "i2c" / "1-0050"
    eeprom_dir.mkdir(parents=True)
    eeprom = eeprom_dir / "eeprom"
    data = init_manufacturing_data(SERIAL)
    data.od_pcba_part_number = "OLDPART"
    write_manufacturing_data(eeprom, data)
    monkeypatch.setattr(formatter, "TIMECARD_ROOT", tmp_path)

    assert reformat_main(["ocp0"]) == 0
    updated = read_manufacturing_data(eeprom)
    assert updated.od_pcba_part_number == OD_PCBA_PART_NUMBER
    assert updated.product_serial_number == SERIAL


def test_reformat_main_wrong_arguments():
    assert reformat_main([]) == 1
    assert reformat_main(["ocp0", "ocp1"]) == 1


def test_reformat_main_missing_ocp(tmp_path, monkeypatch):
    monkeypatch.setattr(formatter, "TIMECARD_ROOT", tmp_path)
    assert reformat_main(["ocp7"]) == 1


def test_reformat_main_missing_eeprom(tmp_path, monkeypatch):
    (tmp_path / "ocp0" / "i2c").mkdir(parents=True)
    monkeypatch.setattr(formatter, "TIMECARD_ROOT", tmp_path)
    assert reformat_main(["ocp0"]) == 1