from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional


def _redirect(stream, target: str, mode: str) -> None:
    with open(target, mode) as handle:
        os.dup2(handle.fileno(), stream.fileno())


def daemonize(
    workdir: Path,
    stdout: Optional[Path] = None,
    stderr: Optional[Path] = None,
) -> None:
    """Detach from the controlling terminal using the classic double fork.

    Returns only in the grandchild; both parents exit. Standard input is
    always bound to /dev/null, standard output and error to the given files
    or /dev/null.
    """
    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)

    os.chdir(workdir)
    os.umask(0o022)

    sys.stdout.flush()
    sys.stderr.flush()
    _redirect(sys.stdin, os.devnull, "r")
    _redirect(sys.stdout, str(stdout) if stdout else os.devnull, "a+")
    _redirect(sys.stderr, str(stderr) if stderr else os.devnull, "a+")
