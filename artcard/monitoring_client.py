"""Client for the oscillatord monitoring socket."""

from __future__ import annotations

import enum
import getopt
import json
import logging
import socket
import sys
from typing import Any

logger = logging.getLogger(__name__)

RESPONSE_MAX_SIZE = 2048


class MonitoringError(Exception):
    """Raised when talking to the monitoring socket fails."""


class Request(enum.IntEnum):
    NONE = 0
    CALIBRATION = 1
    GNSS_START = 2
    GNSS_STOP = 3
    GNSS_SOFT = 4
    GNSS_HARD = 5
    GNSS_COLD = 6
    READ_EEPROM = 7
    SAVE_EEPROM = 8
    FAKE_HOLDOVER_START = 9
    FAKE_HOLDOVER_STOP = 10
    MRO_COARSE_INC = 11
    MRO_COARSE_DEC = 12


_REQUEST_NAMES = {
    "calibration": Request.CALIBRATION,
    "gnss_start": Request.GNSS_START,
    "gnss_stop": Request.GNSS_STOP,
    "gnss_soft": Request.GNSS_SOFT,
    "gnss_hard": Request.GNSS_HARD,
    "gnss_cold": Request.GNSS_COLD,
    "read_eeprom": Request.READ_EEPROM,
    "save_eeprom": Request.SAVE_EEPROM,
    "fake_holdover_start": Request.FAKE_HOLDOVER_START,
    "fake_holdover_stop": Request.FAKE_HOLDOVER_STOP,
    "mro_coarse_inc": Request.MRO_COARSE_INC,
    "mro_coarse_dec": Request.MRO_COARSE_DEC,
}


def parse_request(name: str) -> Request:
    """Map a request name given on the command line to its request code."""
    try:
        return _REQUEST_NAMES[name]
    except KeyError:
        raise MonitoringError(f"Unknown request {name}") from None


def connect(address: str | None, port: str | int) -> socket.socket:
    """Open a TCP connection to the first reachable address for address:port."""
    try:
        candidates = socket.getaddrinfo(
            address, port, socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP
        )
    except socket.gaierror as exc:
        raise MonitoringError(
            f"Unable to get an Internet address from '{address}:{port}': {exc}"
        ) from exc

    for family, socktype, proto, _, sockaddr in candidates:
        version = 4 if family == socket.AF_INET else 6
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            logger.warning(
                "Couldn't open a socket for '%s:%s' (IPv%i): %s",
                address, port, version, exc,
            )
            continue
        try:
            sock.connect(sockaddr)
        except OSError as exc:
            logger.warning(
                "Couldn't connect to '%s:%s' (IPv%i) : %s", address, port, version, exc
            )
            sock.close()
            continue
        return sock
    raise MonitoringError(f"Could not connect to {address}:{port}")


def send_request(sock: socket.socket, request: Request | int) -> Any:
    """Send a JSON request and return the decoded JSON response."""
    payload = '{ "request": %d }' % int(request)
    try:
        sock.sendall(payload.encode("ascii"))
    except OSError as exc:
        raise MonitoringError(f"Error sending request: {exc}") from exc

    received = b""
    while len(received) < RESPONSE_MAX_SIZE:
        try:
            chunk = sock.recv(RESPONSE_MAX_SIZE - len(received))
        except OSError as exc:
            raise MonitoringError(f"Error receiving response: {exc}") from exc
        if not chunk:
            break
        received += chunk
        try:
            return json.loads(received.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            continue
    try:
        return json.loads(received.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MonitoringError(f"Invalid response: {received!r}") from exc


def _field(layer: Any, key: str) -> Any:
    return layer.get(key) if isinstance(layer, dict) else None


def _as_str(value: Any) -> str:
    if value is None:
        return "(null)"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value)


def _as_int(value: Any) -> int:
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0


def _as_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return len(value) != 0
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return False


_CONVERGENCE_LABELS = {
    "TRACKING": "tracking",
    "LOCK_LOW_RESOLUTION": "lock low resolution",
    "LOCK_HIGH_RESOLUTION": "lock high resolution",
}


def _describe_disciplining(layer: Any) -> list[str]:
    status = _field(layer, "status")
    count = _as_int(_field(layer, "current_phase_convergence_count"))
    threshold = _as_int(_field(layer, "valid_phase_convergence_threshold"))
    progress = _as_float(_field(layer, "convergence_progress"))
    lines = [
        "Disciplining detected",
        f"\t- Current status: {_as_str(status)}",
        f"\t- tracking_only: {_as_str(_field(layer, 'tracking_only'))}",
        f"\t- ready_for_holdover: {_as_str(_field(layer, 'ready_for_holdover'))}",
    ]
    label = _CONVERGENCE_LABELS.get(status) if isinstance(status, str) else None
    if label is not None:
        lines.append(
            f"\t- {label} convergence progress: {progress:0.2f} % ({count}/{threshold})"
        )
    return lines


def _describe_oscillator(layer: Any) -> list[str]:
    lock = _as_bool(_field(layer, "lock"))
    return [
        "Oscillator detected",
        f"\t- model: {_as_str(_field(layer, 'model'))}",
        f"\t- fine_ctrl: {_as_int(_field(layer, 'fine_ctrl'))}",
        f"\t- coarse_ctrl: {_as_int(_field(layer, 'coarse_ctrl'))}",
        f"\t- lock: {'True' if lock else 'False'}",
        f"\t- temperature: {_as_float(_field(layer, 'temperature')):f}",
    ]


def _describe_clock(layer: Any) -> list[str]:
    return [
        "Clock detected",
        f"\t- class: {_as_str(_field(layer, 'class'))}",
        f"\t- offset: {_as_int(_field(layer, 'offset'))}",
    ]


def _describe_gnss(layer: Any) -> list[str]:
    fix_ok = _as_bool(_field(layer, "fixOk"))
    error = _as_float(_field(layer, "survey_in_position_error"))
    return [
        "GNSS detected",
        f"\t- fix: {_as_int(_field(layer, 'fix'))}",
        f"\t- fixOk: {'True' if fix_ok else 'False'}",
        f"\t- antenna_status: {_as_int(_field(layer, 'antenna_status'))}",
        f"\t- antenna_power: {_as_int(_field(layer, 'antenna_power'))}",
        f"\t- survey_in_position_error: {error:0.2f} m",
        f"\t- lsChange: {_as_int(_field(layer, 'lsChange'))}",
        f"\t- leap_seconds: {_as_int(_field(layer, 'leap_seconds'))}",
    ]


_CALIBRATION_FIELDS = (
    ("ctrl_nodes_length", _as_int),
    ("ctrl_load_nodes", _as_str),
    ("ctrl_drift_coeffs", _as_str),
    ("coarse_equilibrium", _as_int),
    ("calibration_date", _as_int),
    ("calibration_valid", _as_str),
    ("ctrl_nodes_length_factory", _as_int),
    ("ctrl_load_nodes_factory", _as_str),
    ("ctrl_drift_coeffs_factory", _as_str),
    ("coarse_equilibrium_factory", _as_int),
    ("estimated_equilibrium_ES", _as_int),
)


def _describe_parameters(layer: Any) -> list[str]:
    lines = ["Disciplining parameters detected"]
    calibration = _field(layer, "calibration_parameters")
    if calibration is not None:
        lines.append("\t- Calibration parameters")
        for key, convert in _CALIBRATION_FIELDS:
            lines.append(f"\t\t- {key}: {convert(_field(calibration, key))}")
    table = _field(layer, "temperature_table")
    if table is not None:
        lines.append("\t- Temperature table")
        if isinstance(table, dict):
            for temperature_range, mean_value in table.items():
                lines.append(f"\t\t- {temperature_range}: {_as_str(mean_value)}")
    return lines


_SECTIONS = (
    ("disciplining", _describe_disciplining),
    ("oscillator", _describe_oscillator),
    ("clock", _describe_clock),
    ("gnss", _describe_gnss),
    ("disciplining_parameters", _describe_parameters),
)


def describe_response(response: Any) -> list[str]:
    """Turn a monitoring response into human-readable report lines."""
    lines: list[str] = []
    for key, describe in _SECTIONS:
        layer = _field(response, key)
        if layer is not None:
            lines.extend(describe(layer))
    action = _field(response, "Action requested")
    if action is not None:
        lines.append(f"Action requested: {_as_str(action)}")
    return lines


def _print_help() -> None:
    print("usage: art_monitoring_client [-h -r REQUEST_TYPE -a ADDRESS] -p PORT")
    print("- -a ADDRESS: Address socket should bind to. Defaults to local address")
    print("- -p PORT: Port socket should bind to")
    print("- -r REQUEST_TYPE: send a request to oscillatord. Accepted values are:")
    print("\t- calibration: request a calibration of the algorithm")
    print("\t- gnss_start: start gnss receiver")
    print("\t- gnss_stop: stop gnss receiver.")
    print("\t- read_eeprom: read disciplining data from EEPROM.")
    print("\t- save_eeprom: save minipod's disciplining data in EEPROM.")
    print("\t- fake_holdover_start: start fake holdover")
    print("\t- fake_holdover_stop: stop fake holdover.")
    print("- -h: prints help")


def main(argv=None) -> int:
    """Query oscillatord's monitoring socket and report what it answers."""
    args = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        opts, _ = getopt.getopt(args, "a:p:r:h")
    except getopt.GetoptError as exc:
        if exc.opt == "r":
            print("Option -r requires request type.", file=sys.stderr)
        else:
            print(f"Unknown option character `{exc.opt}'.", file=sys.stderr)
        return 1

    request = Request.NONE
    address = None
    port = None
    for opt, value in opts:
        if opt == "-a":
            address = value
        elif opt == "-p":
            port = value
        elif opt == "-r":
            try:
                request = parse_request(value)
            except MonitoringError as exc:
                logger.error("%s", exc)
                return 1
            logger.info("Action requested: %s", value)
        elif opt == "-h":
            _print_help()
            return 0

    if port is None:
        logger.error("Bad port")
        _print_help()
        return 1

    try:
        with connect(address, port) as sock:
            response = send_request(sock, request)
    except MonitoringError as exc:
        logger.error("%s", exc)
        logger.error("FAIL")
        return 1

    logger.info("%s", json.dumps(response))
    for line in describe_response(response):
        logger.info("%s", line)
    logger.info("PASSED !")
    return 0