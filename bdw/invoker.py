"""Process invoker: runs the bd executable and captures its output."""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from bdw.errors import CommandCancelledError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "bd"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one bd invocation.

    ``launch_error`` is set when the executable could not be started at all;
    in that case ``returncode`` is -1 and both streams are empty.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: bytes = b""
    stderr: str = ""
    launch_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.launch_error is None and self.returncode == 0


class Invoker(ABC):
    @abstractmethod
    def run(self, args: Sequence[str], *, cwd: Path, timeout: float | None = None) -> CommandResult: ...


class SubprocessInvoker(Invoker):
    """Runs ``<executable> <args...>`` in ``cwd``, one process per call."""

    def __init__(self, executable: str = DEFAULT_EXECUTABLE) -> None:
        self.executable = executable

    def run(self, args: Sequence[str], *, cwd: Path, timeout: float | None = None) -> CommandResult:
        args = tuple(args)
        resolved = shutil.which(self.executable)
        if resolved is None:
            logger.debug("executable %r not found on PATH", self.executable)
            return CommandResult(args=args, returncode=-1, launch_error=f"{self.executable}: executable not found")

        logger.debug("running %s %s (cwd=%s)", self.executable, " ".join(args), cwd)
        try:
            proc = subprocess.Popen(
                [resolved, *args],
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            if exc.filename is not None and os.fspath(exc.filename) == resolved:
                # On PATH but not runnable: bad interpreter line, noexec mount, removed since lookup
                logger.debug("could not start %s: %s", resolved, exc)
                return CommandResult(args=args, returncode=-1, launch_error=str(exc))
            # Could not run in cwd, e.g. the directory is gone
            return CommandResult(args=args, returncode=-1, stderr=str(exc))

        # The with-block closes the pipes and reaps the child on every path.
        with proc:
            try:
                stdout, stderr = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.communicate()
                logger.warning("bd %s timed out after %ss; killed pid %d", " ".join(args), timeout, proc.pid)
                raise CommandCancelledError(
                    f"bd {' '.join(args)}: timed out after {timeout}s",
                    args=args,
                ) from None
            except BaseException:
                proc.kill()
                raise

        logger.debug("bd %s exited with status %d", " ".join(args), proc.returncode)
        return CommandResult(
            args=args,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr.decode("utf-8", errors="replace"),
        )
