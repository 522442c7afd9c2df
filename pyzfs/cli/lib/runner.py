"""
Command execution for the ZFS tools.

A `Runner` executes one external command per call through an `Executor`
(local process or remote session) and either tokenizes its output into rows
of whitespace-separated fields (`run`) or passes raw stdout bytes straight to
a caller-supplied sink (`stream`).
"""

import io
import logging
import shlex
import shutil
import subprocess
import tempfile
import uuid
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional, Sequence

from pyzfs.cli.lib.exceptions import ExecutionError, FormatError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

CommandResult = List[List[str]]


class Executor(ABC):
    """Backend that starts one command and connects its standard streams."""

    @abstractmethod
    def run(
        self,
        stdin: Optional[BinaryIO],
        stdout: BinaryIO,
        stderr: BinaryIO,
        command: str,
        *args: str,
    ) -> int:
        """Run a command to completion.

        Args:
            stdin: Stream copied to the command's input, or None for no input
            stdout: Sink receiving the command's raw output
            stderr: Sink receiving the command's raw error output
            command: Executable name or path
            args: Command arguments

        Returns:
            Exit status of the command

        Raises:
            ExecutionError: If the command cannot be started
        """


class LocalExecutor(Executor):
    """
    Executor backed by a local child process.

    stderr is spooled to a temporary file. When stdin is supplied, stdout is
    spooled as well while stdin is copied in chunks, so neither side can
    block the other and no payload is held in memory. The child is killed
    if copying its output fails.
    """

    @staticmethod
    def _popen(argv: List[str], **kwargs) -> subprocess.Popen:
        try:
            return subprocess.Popen(argv, **kwargs)
        except OSError as e:
            raise ExecutionError(str(e)) from e

    def run(self, stdin, stdout, stderr, command, *args):
        argv = [command, *args]
        with tempfile.TemporaryFile() as err_file:
            if stdin is None:
                with self._popen(
                    argv, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=err_file
                ) as process:
                    try:
                        shutil.copyfileobj(process.stdout, stdout, CHUNK_SIZE)
                    except BaseException:
                        process.kill()
                        raise
                    returncode = process.wait()
            else:
                with tempfile.TemporaryFile() as out_file:
                    with self._popen(argv, stdin=subprocess.PIPE, stdout=out_file, stderr=err_file) as process:
                        try:
                            with process.stdin:
                                shutil.copyfileobj(stdin, process.stdin, CHUNK_SIZE)
                        except BrokenPipeError:
                            # Command exited before consuming all input
                            pass
                        except BaseException:
                            process.kill()
                            raise
                        returncode = process.wait()
                    out_file.seek(0)
                    shutil.copyfileobj(out_file, stdout, CHUNK_SIZE)

            err_file.seek(0)
            shutil.copyfileobj(err_file, stderr, CHUNK_SIZE)
        return returncode


class SSHExecutor(Executor):
    """
    Executor that runs commands on a remote host through the `ssh` client.

    The remote command line is shell-quoted, so arguments reach the remote
    tool unchanged.
    """

    def __init__(
        self,
        host: str,
        *,
        user: Optional[str] = None,
        port: Optional[int] = None,
        options: Sequence[str] = (),
        ssh_command: str = "ssh",
        local: Optional[Executor] = None,
    ):
        self.host = host
        self.user = user
        self.port = port
        self.options = list(options)
        self.ssh_command = ssh_command
        self.local = local or LocalExecutor()

    def ssh_args(self, command: str, *args: str) -> List[str]:
        ssh_args = []
        if self.port:
            ssh_args.extend(["-p", str(self.port)])
        if self.user:
            ssh_args.extend(["-l", self.user])
        for option in self.options:
            ssh_args.extend(["-o", option])
        ssh_args.append(self.host)
        ssh_args.append(shlex.join([command, *args]))
        return ssh_args

    def run(self, stdin, stdout, stderr, command, *args):
        return self.local.run(stdin, stdout, stderr, self.ssh_command, *self.ssh_args(command, *args))


class CommandLogger:
    """Hook receiving every command before and after it is executed."""

    def log(self, cmd: List[str]) -> None:
        pass


class LoggingCommandLogger(CommandLogger):
    """Forwards command events to the standard logging module."""

    def __init__(self, target: Optional[logging.Logger] = None):
        self.target = target or logger

    def log(self, cmd: List[str]) -> None:
        self.target.info("%s", " ".join(cmd))


def tokenize_output(text: str) -> CommandResult:
    """
    Split command output into rows of whitespace-separated fields.

    Fields are split on runs of whitespace, so a value containing blanks
    ends up as several fields. The tools' tabular output has no quoting, so
    this cannot be recovered here.

    Args:
        text: Complete stdout of a command

    Returns:
        One list of fields per output line

    Raises:
        FormatError: If the output does not end with a newline
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] != "":
        raise FormatError("output does not end with a newline")
    return [line.split() for line in lines[:-1]]


class Runner:
    """Executes the ZFS tools and returns tokenized output."""

    def __init__(
        self,
        executor: Optional[Executor] = None,
        *,
        sudo: bool = False,
        sudo_command: str = "sudo",
        command_logger: Optional[CommandLogger] = None,
    ):
        self.executor = executor or LocalExecutor()
        self.sudo = sudo
        self.sudo_command = sudo_command
        self.command_logger = command_logger or CommandLogger()

    def argv(self, command: str, *args: str) -> List[str]:
        if self.sudo:
            return [self.sudo_command, command, *args]
        return [command, *args]

    def _execute(self, stdin: Optional[BinaryIO], stdout: BinaryIO, command: str, args: Sequence[str]) -> None:
        cmd, *cmd_args = self.argv(command, *args)
        joined_args = " ".join(cmd_args)
        debug = f"{cmd} {joined_args}"
        stderr = io.BytesIO()

        run_id = str(uuid.uuid4())
        logger.debug("ID:%s START %s", run_id, debug)
        self.command_logger.log([f"ID:{run_id}", "START", joined_args])
        try:
            returncode = self.executor.run(stdin, stdout, stderr, cmd, *cmd_args)
        except ExecutionError as e:
            raise ExecutionError(e.message, debug=debug, stderr=_decode(stderr.getvalue())) from e

        if returncode != 0:
            logger.debug("ID:%s FAILED exit status %d", run_id, returncode)
            raise ExecutionError(
                f"exit status {returncode}",
                debug=debug,
                stderr=_decode(stderr.getvalue()),
                returncode=returncode,
            )
        logger.debug("ID:%s FINISH", run_id)
        self.command_logger.log([f"ID:{run_id}", "FINISH"])

    def run(self, command: str, *args: str, stdin: Optional[BinaryIO] = None) -> CommandResult:
        """
        Run a command and tokenize its output.

        Args:
            command: Executable name (e.g., "zfs")
            args: Command arguments
            stdin: Optional binary stream copied to the command's input

        Returns:
            Output rows, each a list of whitespace-separated fields

        Raises:
            ExecutionError: If the command cannot be started or fails
            FormatError: If the output is not newline terminated
        """
        stdout = io.BytesIO()
        self._execute(stdin, stdout, command, args)
        return tokenize_output(_decode(stdout.getvalue()))

    def stream(self, command: str, *args: str, stdout: BinaryIO, stdin: Optional[BinaryIO] = None) -> None:
        """
        Run a command, copying its raw stdout to `stdout` without parsing.

        Used for send/receive streams whose size is unbounded.

        Raises:
            ExecutionError: If the command cannot be started or fails
        """
        self._execute(stdin, stdout, command, args)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")
