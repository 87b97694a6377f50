"""Run one interpreter subprocess to completion."""

from __future__ import annotations

import atexit
import logging
import os
import signal
import subprocess
import time
import weakref
from dataclasses import dataclass
from subprocess import DEVNULL, PIPE, Popen, TimeoutExpired
from typing import Any

from diagbridge.encoding import EncodedCommand

logger = logging.getLogger("diagbridge.runner")

_KILL_GRACE_SECONDS = 5

_active_processes: set[weakref.ref[Popen[bytes]]] = set()


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one subprocess execution."""

    exit_code: int
    stdout: bytes
    stderr: bytes
    timed_out: bool
    duration_ms: int
    spawn_error: str | None = None

    @property
    def status(self) -> str:
        if self.spawn_error is not None:
            return "spawn_error"
        if self.timed_out:
            return "timeout"
        return "success" if self.exit_code == 0 else "error"

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


def _popen_kwargs() -> dict[str, Any]:
    if os.name == "nt":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def _terminate_process(proc: Popen[bytes]) -> None:
    """Stop the process and everything it spawned."""
    if os.name == "nt":
        _terminate_process_windows(proc)
        return
    try:
        os.killpg(proc.pid, signal.SIGTERM)
    except ProcessLookupError:
        return
    try:
        proc.wait(timeout=_KILL_GRACE_SECONDS)
    except TimeoutExpired:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            proc.poll()  # Reap the process that died between SIGTERM and SIGKILL
            return
        proc.wait(timeout=_KILL_GRACE_SECONDS)


def _terminate_process_windows(proc: Popen[bytes]) -> None:
    try:
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
            stdin=DEVNULL,
            stdout=DEVNULL,
            stderr=DEVNULL,
            timeout=_KILL_GRACE_SECONDS,
            check=False,
        )
    except (OSError, TimeoutExpired) as exc:
        logger.debug("taskkill failed for %s: %s", proc.pid, exc)
    if proc.poll() is None:
        proc.kill()
    proc.wait(timeout=_KILL_GRACE_SECONDS)


def _terminate_quietly(proc: Popen[bytes]) -> None:
    try:
        _terminate_process(proc)
    except Exception as exc:
        logger.warning("Failed to terminate process %s: %s", proc.pid, exc)


def cleanup_processes() -> None:
    """Terminate every subprocess that is still running."""
    for ref in list(_active_processes):
        proc = ref()
        if proc and proc.poll() is None:
            logger.debug("Cleaning up orphan process %s", proc.pid)
            _terminate_quietly(proc)
    _active_processes.clear()


atexit.register(cleanup_processes)


def _track_process(proc: Popen[bytes]) -> None:
    _active_processes.add(weakref.ref(proc, lambda ref: _active_processes.discard(ref)))


def _untrack_process(proc: Popen[bytes]) -> None:
    for ref in list(_active_processes):
        if ref() is proc:
            _active_processes.discard(ref)
            break


def active_process_count() -> int:
    return sum(1 for ref in list(_active_processes) if ref() is not None)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _spawn_failure(start: float, message: str) -> ProcessOutcome:
    return ProcessOutcome(
        exit_code=-1,
        stdout=b"",
        stderr=b"",
        timed_out=False,
        duration_ms=_elapsed_ms(start),
        spawn_error=message,
    )


def run_process(
    command: EncodedCommand,
    timeout_seconds: float,
    *,
    env: dict[str, str] | None = None,
    cwd: str | None = None,
) -> ProcessOutcome:
    """Run ``command`` and wait for it, bounded by ``timeout_seconds``.

    Never raises: spawn errors, timeouts and unexpected failures are all
    reported through the returned :class:`ProcessOutcome`. On timeout the
    process group is killed and any partial output is discarded.
    """
    start = time.monotonic()
    logger.debug("Spawning %s with %d args", command.interpreter_path, len(command.argument_vector))
    try:
        proc = Popen(
            command.argv,
            stdin=DEVNULL,
            stdout=PIPE,
            stderr=PIPE,
            shell=False,
            cwd=cwd,
            env=env,
            **_popen_kwargs(),
        )
    except FileNotFoundError:
        logger.error("%s not found or not executable", command.interpreter_path)
        return _spawn_failure(start, f"{command.interpreter_path} not found or not executable")
    except PermissionError as exc:
        logger.error("Permission denied starting process: %s", exc)
        return _spawn_failure(start, f"Permission denied: {exc}")
    except (OSError, ValueError) as exc:
        logger.error("Failed to start process: %s", exc)
        return _spawn_failure(start, f"Failed to start process: {exc}")

    _track_process(proc)
    try:
        # communicate() drains stdout and stderr concurrently.
        stdout, stderr = proc.communicate(timeout=timeout_seconds)
        logger.debug("Process %s exited with %s", proc.pid, proc.returncode)
        return ProcessOutcome(
            exit_code=proc.returncode,
            stdout=stdout or b"",
            stderr=stderr or b"",
            timed_out=False,
            duration_ms=_elapsed_ms(start),
        )
    except TimeoutExpired:
        _terminate_quietly(proc)
        try:
            discarded_out, discarded_err = proc.communicate(timeout=_KILL_GRACE_SECONDS)
            logger.debug(
                "Discarded %d bytes stdout, %d bytes stderr from timed out process",
                len(discarded_out or b""),
                len(discarded_err or b""),
            )
        except (TimeoutExpired, OSError, ValueError) as exc:
            logger.debug("Could not drain timed out process %s: %s", proc.pid, exc)
        logger.warning("Process %s timed out after %ss", proc.pid, timeout_seconds)
        return ProcessOutcome(
            exit_code=-1,
            stdout=b"",
            stderr=b"",
            timed_out=True,
            duration_ms=_elapsed_ms(start),
        )
    except Exception as exc:
        _terminate_quietly(proc)
        logger.error("Process %s failed with error: %s", proc.pid, exc)
        return ProcessOutcome(
            exit_code=-1,
            stdout=b"",
            stderr=str(exc).encode("utf-8", errors="replace"),
            timed_out=False,
            duration_ms=_elapsed_ms(start),
        )
    finally:
        _untrack_process(proc)


__all__ = [
    "ProcessOutcome",
    "active_process_count",
    "cleanup_processes",
    "run_process",
]
