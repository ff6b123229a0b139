from __future__ import annotations

import re
from typing import List, Mapping

from occi.core import Settings
from occi.diagnostics import DiagnosticLogger
from occi.system import capture_output, read_file, write_file


# iwconfig fallback only knows the first adapter; other names are not handled.
FALLBACK_INTERFACE = "wlan0"

_WIRELESS_LINK = re.compile(r"^\d+:\s+(wl[^:@\s]*)", re.MULTILINE)


def wireless_interfaces(log: DiagnosticLogger) -> List[str]:
    output = capture_output(log, ["ip", "-o", "link", "show"]).stdout
    return _WIRELESS_LINK.findall(output)


def render_supplicant_config(network_block: str, settings: Settings) -> str:
    lines = [
        "ctrl_interface=DIR=/var/run/wpa_supplicant GROUP=netdev",
        f"# this file is managed by occi via {settings.config_path}; edits will be overwritten",
        "update_config=1",
        "",
        network_block.rstrip("\n"),
    ]
    return "\n".join(lines) + "\n"


def _apply_passphrase(ssid: str, password: str, log: DiagnosticLogger, settings: Settings) -> List[str]:
    block = capture_output(log, ["wpa_passphrase", ssid, password]).stdout
    content = render_supplicant_config(block, settings)
    path = settings.wpa_supplicant_path
    if path.exists() and read_file(path) == content:
        return [f"{path} :: {ssid} :: unchanged"]

    lines: List[str] = []
    reconfigure = capture_output(log, ["wpa_cli", "reconfigure"])
    lines.extend(f"wpa_cli :: {line}" for line in reconfigure.lines() if line.strip())
    write_file(path, content, settings.wpa_supplicant_backup_path)
    lines.append(f"{path} :: {ssid} :: written")
    return lines


def _apply_open_network(ssid: str, log: DiagnosticLogger) -> List[str]:
    result = capture_output(log, ["iwconfig", FALLBACK_INTERFACE, "essid", ssid])
    lines = [f"iwconfig :: {line}" for line in result.lines() if line.strip()]
    lines.append(f"{FALLBACK_INTERFACE} :: essid {ssid}")
    return lines


def handle_wifi(config: Mapping[str, str], log: DiagnosticLogger, settings: Settings) -> List[str]:
    ssid = config.get("wifi_ssid")
    if not ssid:
        return ["no wifi_ssid configured, nothing to do"]

    interfaces = wireless_interfaces(log)
    if not interfaces:
        return ["no wireless hardware found"]
    log.log("interfaces", ", ".join(interfaces))

    password = config.get("wifi_password")
    if password:
        return _apply_passphrase(ssid, password, log, settings)
    return _apply_open_network(ssid, log)
