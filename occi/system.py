from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from occi.diagnostics import DiagnosticLogger


@dataclass
class CommandResult:
    returncode: int
    stdout: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def lines(self) -> List[str]:
        return self.stdout.splitlines()


def run_command(command: Sequence[str]) -> CommandResult:
    logging.debug("running %s", shlex.join(command))
    try:
        result = subprocess.run(
            command,
            check=False,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        return CommandResult(returncode=result.returncode, stdout=result.stdout)
    except FileNotFoundError:
        return CommandResult(returncode=127, stdout=f"command not found: {command[0]}")
    except PermissionError:
        return CommandResult(returncode=126, stdout=f"permission denied: {command[0]}")


def capture_output(log: DiagnosticLogger, command: Sequence[str]) -> CommandResult:
    result = run_command(command)
    if not result.ok:
        reason = result.stdout.strip() or f"exit status {result.returncode}"
        log.error(shlex.join(command), reason)
        logging.warning("command %s failed with status %s", command[0], result.returncode)
        # error text stays in the log, callers only see output from successful runs
        return CommandResult(returncode=result.returncode, stdout="")
    return result


def read_file(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_file(path: Path, content: str, backup_path: Path | None = None) -> None:
    path = Path(path)
    if backup_path is not None:
        backup_path = Path(backup_path)
        if not backup_path.exists() and path.exists():
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            backup_path.write_text(read_file(path), encoding="utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
