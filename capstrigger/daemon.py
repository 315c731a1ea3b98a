"""Detaching the process into the background."""
from __future__ import annotations

import os
import subprocess
import sys
from typing import Mapping, Optional, Sequence

DAEMON_ENV = "CAPSTRIGGER_DAEMONIZED"


def is_daemonized(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(DAEMON_ENV) == "1"


def daemonize(argv: Optional[Sequence[str]] = None, *, popen=None) -> None:
    """Relaunch this program in a new session and exit the foreground process.

    ``argv`` is passed to the interpreter; by default the package is re-run
    with ``-m`` and the current command line arguments. Does nothing when
    already running as the detached child; the marker
    variable in the child's environment prevents a second relaunch.
    """

    if is_daemonized():
        return
    if argv is None:
        argv = ["-m", "capstrigger", *sys.argv[1:]]
    popen = popen or subprocess.Popen
    env = dict(os.environ)
    env[DAEMON_ENV] = "1"
    kwargs = {
        "env": env,
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
    else:
        kwargs["start_new_session"] = True
    try:
        process = popen([sys.executable, *argv], **kwargs)
    except OSError as exc:
        raise SystemExit(f"[ERROR] Failed to start in background: {exc}") from exc
    print(f"Running in background (PID: {process.pid})")
    raise SystemExit(0)
