"""CD table-of-contents reader protocol and subprocess helper."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Protocol

from cddbkit.exceptions import TOCReadError

logger = logging.getLogger(__name__)

# Reading a TOC spins up the drive, which can take a while
READER_TIMEOUT = 60


class TOCReader(Protocol):
    """Protocol for CD table-of-contents readers."""

    def read_track_offsets(self, use_sudo: bool, device: str) -> list[int]:
        """Read the disc in ``device``.

        Returns:
            Track offsets in frames followed by the disc length in seconds.

        Raises:
            TOCReadError: If the TOC cannot be read.
        """
        ...


def run_reader(binary: str, args: list[str], *, use_sudo: bool = False) -> str:
    """Run a TOC reader binary and return its combined output.

    Args:
        binary: Name of the executable to look up in PATH.
        args: Arguments passed to the executable.
        use_sudo: Run the executable through sudo.

    Returns:
        stdout followed by stderr.

    Raises:
        TOCReadError: If the binary is missing, fails or times out.
    """
    path = shutil.which(binary)
    if path is None:
        raise TOCReadError(f"{binary} not found in PATH")

    cmd = [path, *args]
    if use_sudo:
        sudo = shutil.which("sudo")
        if sudo is None:
            raise TOCReadError("sudo not found in PATH")
        cmd = [sudo, *cmd]

    logger.debug("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=READER_TIMEOUT,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise TOCReadError(f"{binary} timed out after {READER_TIMEOUT}s") from e
    except OSError as e:
        raise TOCReadError(f"Failed to run {binary}: {e}") from e

    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        raise TOCReadError(f"{binary} failed with exit code {result.returncode}: {detail}")
    return result.stdout + result.stderr
