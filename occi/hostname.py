from __future__ import annotations

import re
from typing import Iterable, List, Mapping

from occi.core import Settings
from occi.diagnostics import DiagnosticLogger
from occi.system import capture_output, read_file, write_file


HOSTS_ADDRESS = "127.0.1.1"


def _hosts_line(hostname: str) -> str:
    return f"{HOSTS_ADDRESS}\t{hostname}"


def update_hosts(content: str, hostname: str, old_hostnames: Iterable[str] = ()) -> str:
    """Return ``content`` with a single ``127.0.1.1`` entry for ``hostname``.

    An existing entry whose first name is one of ``old_hostnames`` is renamed
    in place, keeping its separator and any aliases. Otherwise the entry is
    appended unless already there.
    """
    address = re.escape(HOSTS_ADDRESS)
    for old in old_hostnames:
        if not old or old == hostname:
            continue
        pattern = re.compile(rf"^({address}[ \t]+){re.escape(old)}(?=[ \t]|$)", re.MULTILINE)
        if pattern.search(content):
            return pattern.sub(lambda match: match.group(1) + hostname, content, count=1)
    present = re.compile(rf"^{address}[ \t]+{re.escape(hostname)}(?=[ \t]|$)", re.MULTILINE)
    if present.search(content):
        return content
    if content and not content.endswith("\n"):
        content += "\n"
    return content + _hosts_line(hostname) + "\n"


def _persisted_hostname(settings: Settings) -> str:
    if not settings.hostname_path.exists():
        return ""
    return read_file(settings.hostname_path).rstrip("\n")


def handle_hostname(config: Mapping[str, str], log: DiagnosticLogger, settings: Settings) -> List[str]:
    hostname = config.get("hostname")
    if not hostname:
        return ["no hostname configured, nothing to do"]

    lines: List[str] = []
    changed = False

    persisted = _persisted_hostname(settings)
    if persisted != hostname:
        write_file(settings.hostname_path, hostname + "\n")
        lines.append(f"{settings.hostname_path} :: {persisted or '(none)'} -> {hostname}")
        changed = True

    live = capture_output(log, ["hostname"]).stdout.strip()
    if live != hostname:
        result = capture_output(log, ["hostname", hostname])
        if result.ok:
            lines.append(f"live hostname :: {live or '(unknown)'} -> {hostname}")
            changed = True

    hosts = read_file(settings.hosts_path)
    updated = update_hosts(hosts, hostname, (persisted, live))
    if updated != hosts:
        write_file(settings.hosts_path, updated)
        lines.append(f"{settings.hosts_path} :: {_hosts_line(hostname)}")
        changed = True

    if not changed:
        return [f"hostname :: {hostname} :: unchanged"]

    if settings.avahi_init_script.exists():
        result = capture_output(log, [str(settings.avahi_init_script), "restart"])
        lines.extend(f"avahi :: {line}" for line in result.lines() if line.strip())
        if result.ok:
            lines.append("avahi :: restarted")
    return lines
