"""
Process handles for producer and consumer processes.

A `ProcessHandle` is the only way the benchmark touches a running media
process: it exposes liveness, graceful termination and forced kill, and owns
the process's output file. Raw PIDs are never passed around.
"""

import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence

import psutil

logger = logging.getLogger(__name__)


class ProcessHandle:
    """
    Liveness and termination capability for one spawned process.
    """

    def __init__(
        self,
        popen: subprocess.Popen,
        role: str,
        slot_id: int,
        log_path: Optional[Path] = None,
        log_file: Optional[IO[Any]] = None,
    ):
        self._popen = popen
        self.role = role
        self.slot_id = slot_id
        self.log_path = log_path
        self._log_file = log_file

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def name(self) -> str:
        return f"{self.role} {self.slot_id} (PID {self.pid})"

    def is_alive(self) -> bool:
        """True while the process runs and is not a zombie."""
        if self._popen.poll() is not None:
            return False
        try:
            status = psutil.Process(self.pid).status()
            return status not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    def terminate(self) -> None:
        """Send SIGTERM."""
        try:
            self._popen.terminate()
        except ProcessLookupError:
            pass

    def force_kill(self) -> None:
        """Send SIGKILL to the process and its process group."""
        try:
            self._popen.kill()
        except ProcessLookupError:
            pass
        try:
            os.killpg(self.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
        except OSError as e:
            logger.debug(f"Error killing process group {self.pid}: {e}")

    def wait(self, timeout: float) -> bool:
        """Wait up to `timeout` seconds for exit; return True if it exited."""
        try:
            self._popen.wait(timeout=timeout)
            return True
        except subprocess.TimeoutExpired:
            return False

    def close(self) -> None:
        """Release the output file handle."""
        if self._log_file is not None:
            try:
                self._log_file.close()
            except OSError as e:
                logger.warning(f"Failed to close output of {self.name}: {e}")
            self._log_file = None

    def __repr__(self) -> str:
        return f"ProcessHandle(role={self.role!r}, slot_id={self.slot_id}, pid={self.pid})"


def spawn_process(
    command: Sequence[str],
    role: str,
    slot_id: int,
    log_path: Path,
    env: Optional[Dict[str, str]] = None,
) -> ProcessHandle:
    """
    Start a detached process whose stdout and stderr go to `log_path`.

    The child gets its own session so that a forced kill can take down the
    whole process group.

    Raises:
        OSError: If the executable cannot be started
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_file = open(log_path, "w", encoding="utf-8")
    process_env = None
    if env:
        process_env = os.environ.copy()
        process_env.update(env)
    try:
        popen = subprocess.Popen(
            list(command),
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            env=process_env,
            start_new_session=True,
        )
    except OSError:
        log_file.close()
        raise

    logger.debug(f"Started {role} {slot_id} with PID {popen.pid}: {' '.join(command)}")
    return ProcessHandle(popen, role=role, slot_id=slot_id, log_path=log_path, log_file=log_file)


def find_processes_by_name(name: str) -> List[psutil.Process]:
    """Return live processes whose executable name equals `name`."""
    matches = []
    own_pid = os.getpid()
    for proc in psutil.process_iter(["pid", "name", "status"]):
        try:
            if proc.info["pid"] == own_pid or proc.info["name"] != name:
                continue
            if proc.info["status"] in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                continue
            matches.append(proc)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return matches


def kill_processes(processes: List[psutil.Process], timeout: float = 2.0) -> int:
    """SIGKILL the given processes and wait for them; return how many were signalled."""
    killed = []
    for proc in processes:
        try:
            proc.kill()
            killed.append(proc)
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied killing PID {proc.pid}")
    if killed:
        _, still_alive = psutil.wait_procs(killed, timeout=timeout)
        for proc in still_alive:
            logger.error(f"Process PID {proc.pid} survived SIGKILL")
    return len(killed)
