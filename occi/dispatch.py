from __future__ import annotations

from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

from occi.core import Settings
from occi.diagnostics import DiagnosticLogger
from occi.hostname import handle_hostname
from occi.selftest import handle_selftest
from occi.wifi import handle_wifi


Handler = Callable[[Mapping[str, str], DiagnosticLogger, Settings], Iterable[str]]

HANDLERS: Tuple[Tuple[str, Handler], ...] = (
    ("selftest", handle_selftest),
    ("hostname", handle_hostname),
    ("wifi", handle_wifi),
)


def handler_names(handlers: Sequence[Tuple[str, Handler]] = HANDLERS) -> List[str]:
    return [name for name, _ in handlers]


def run_handlers(
    config: Mapping[str, str],
    log: DiagnosticLogger,
    settings: Settings,
    handlers: Sequence[Tuple[str, Handler]] = HANDLERS,
    only: Iterable[str] | None = None,
) -> List[str]:
    selected = set(only) if only is not None else None
    ran: List[str] = []
    with log.scope("run") as run_log:
        for name, handler in handlers:
            if selected is not None and name not in selected:
                continue
            with run_log.scope(name) as handler_log:
                for line in handler(config, handler_log, settings):
                    handler_log.log(line)
            ran.append(name)
    return ran
