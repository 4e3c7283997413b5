"""
Command execution utilities.

This module provides a single helper for running short-lived external
commands (ffprobe, nvidia-smi, lspci, ...) and capturing their output, plus
checks for the availability of external tools.
"""

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..validation import handle_subprocess_error

logger = logging.getLogger(__name__)


def run_command(
    command: Union[str, Sequence[str]],
    cwd: Optional[Path] = None,
    shell: bool = False,
    timeout: Optional[float] = 30.0,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output.

    Args:
        command: The command string or argument list to execute.
        cwd: Working directory for command execution.
        shell: Whether to use the shell for execution.
        timeout: Seconds before the command is abandoned.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 when the command could not be run at all.
    """
    if isinstance(command, str) and not shell:
        args: Union[str, List[str]] = shlex.split(command)
    else:
        args = command if isinstance(command, str) else list(command)

    logger.debug(f"Executing command: '{args}' in '{cwd or Path.cwd()}'")
    try:
        process = subprocess.run(
            args,
            cwd=cwd,
            shell=shell,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        name = args[0] if isinstance(args, list) and args else str(args)
        logger.debug(f"Command not found: {name}: {e}")
        return -1, "", f"Error: Command not found '{name}'"
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {args}")
        return -1, "", f"Error: Command timed out after {timeout}s"
    except OSError as e:
        handle_subprocess_error(e, str(args)[:50], reraise=False, logger=logger)
        return -1, "", f"An unexpected error occurred: {e}"


def is_tool_installed(name: str) -> bool:
    """Check whether an executable is available on PATH."""
    return shutil.which(name) is not None
