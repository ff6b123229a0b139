from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib
from typing import Any, Dict, List

import tomli_w


DEFAULT_CONFIG_PATH = Path("/boot/occidentalis.txt")
DEFAULT_SETTINGS_PATH = Path("/etc/occi.toml")
DEFAULT_PACKAGES = ("occi", "occidentalis")

_CONFIG_LINE = re.compile(r"([a-z_]+)[ \t]*=[ \t]*(.*)", re.IGNORECASE)


class ConfigNotFoundError(FileNotFoundError):
    pass


class ConfigError(ValueError):
    pass


class SettingsError(ValueError):
    pass


def parse_config(text: str) -> Dict[str, str]:
    config: Dict[str, str] = {}
    for line in text.replace("\r\n", "\n").split("\n"):
        match = _CONFIG_LINE.fullmatch(line)
        if not match:
            continue
        key, value = match.groups()
        config[key.lower()] = value
    return config


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> Dict[str, str]:
    path = Path(path)
    if not path.exists():
        raise ConfigNotFoundError(f"config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"config file {path} is not valid UTF-8: {exc}") from exc
    return parse_config(text)


def _path_setting(data: Dict[str, Any], key: str, default: Path | None) -> Path | None:
    value = data.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise SettingsError(f"{key} must be a path string, got {type(value).__name__}")
    return Path(value)


@dataclass
class Settings:
    hostname_path: Path = Path("/etc/hostname")
    hosts_path: Path = Path("/etc/hosts")
    wpa_supplicant_path: Path = Path("/etc/wpa_supplicant/wpa_supplicant.conf")
    wpa_supplicant_backup_path: Path | None = None
    avahi_init_script: Path = Path("/etc/init.d/avahi-daemon")
    version_path: Path = Path("/etc/debian_version")
    packages: List[str] = field(default_factory=lambda: list(DEFAULT_PACKAGES))
    config_path: Path = DEFAULT_CONFIG_PATH

    def __post_init__(self) -> None:
        if self.wpa_supplicant_backup_path is None:
            self.wpa_supplicant_backup_path = Path(f"{self.wpa_supplicant_path}.backup")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hostname_path": str(self.hostname_path),
            "hosts_path": str(self.hosts_path),
            "wpa_supplicant_path": str(self.wpa_supplicant_path),
            "wpa_supplicant_backup_path": str(self.wpa_supplicant_backup_path),
            "avahi_init_script": str(self.avahi_init_script),
            "version_path": str(self.version_path),
            "packages": list(self.packages),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        defaults = cls()
        packages = data.get("packages", defaults.packages)
        if not isinstance(packages, list) or not all(isinstance(item, str) for item in packages):
            raise SettingsError("packages must be a list of package names")
        backup = _path_setting(data, "wpa_supplicant_backup_path", None)
        return cls(
            hostname_path=_path_setting(data, "hostname_path", defaults.hostname_path),
            hosts_path=_path_setting(data, "hosts_path", defaults.hosts_path),
            wpa_supplicant_path=_path_setting(data, "wpa_supplicant_path", defaults.wpa_supplicant_path),
            wpa_supplicant_backup_path=backup,
            avahi_init_script=_path_setting(data, "avahi_init_script", defaults.avahi_init_script),
            version_path=_path_setting(data, "version_path", defaults.version_path),
            packages=list(packages),
        )


def default_settings_path() -> Path:
    return Path(os.getenv("OCCI_SETTINGS_PATH") or DEFAULT_SETTINGS_PATH)


def load_settings(path: Path | None = None) -> Settings:
    path = Path(path) if path is not None else default_settings_path()
    if not path.exists():
        return Settings()
    with path.open("rb") as handle:
        try:
            payload = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise SettingsError(f"invalid settings file {path}: {exc}") from exc
    return Settings.from_dict(payload)


def settings_to_toml(settings: Settings) -> str:
    return tomli_w.dumps(settings.to_dict())
