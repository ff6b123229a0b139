from __future__ import annotations

from typing import List, Mapping

from occi.core import Settings
from occi.diagnostics import DiagnosticLogger
from occi.system import capture_output, read_file


KNOWN_KEYS = frozenset({"hostname", "wifi_ssid", "wifi_password"})


def check_keys(config: Mapping[str, str]) -> List[str]:
    lines = []
    for key in sorted(config):
        if key in KNOWN_KEYS:
            lines.append(f"{key} :: valid")
        else:
            lines.append(f"{key} :: error: unrecognized configuration key")
    return lines


def package_installed(package: str, log: DiagnosticLogger) -> bool:
    result = capture_output(log, ["dpkg-query", "-W", "-f=${Status}", package])
    return result.ok and "install ok installed" in result.stdout


def handle_selftest(config: Mapping[str, str], log: DiagnosticLogger, settings: Settings) -> List[str]:
    lines = check_keys(config)
    for package in settings.packages:
        status = "installed" if package_installed(package, log) else "not installed"
        lines.append(f"package :: {package} :: {status}")
    if settings.version_path.exists():
        for line in read_file(settings.version_path).splitlines():
            if line.strip():
                lines.append(f"version :: {line.strip()}")
    else:
        lines.append("version :: unavailable")
    return lines
