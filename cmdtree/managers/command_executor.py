"""
CommandExecutor for running shell commands.

Every command runs as ``bash -c <command>`` with the caller's streams wired
straight through. A stream that is not backed by a file descriptor (e.g. an
``io.StringIO`` buffer) is fed through a pipe instead, so callers can capture
output by passing buffers.
"""
import io
import logging
import os
import subprocess
from typing import Dict, IO, Optional

from cmdtree.constants import DEFAULT_SHELL
from cmdtree.exceptions import CommandExecutionError

logger = logging.getLogger(__name__)


def _has_fileno(stream: Optional[IO]) -> bool:
    """Check whether a stream can be handed to a child process directly."""
    if stream is None:
        return False
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError):
        return False
    return True


def _stream_arg(stream: Optional[IO]):
    """Map a caller stream to a ``subprocess`` argument."""
    if stream is None:
        return None
    if _has_fileno(stream):
        return stream
    return subprocess.PIPE


class CommandExecutor:
    """
    Runs fully rendered command text through the default shell.

    Stateless: the same instance serves variable resolution, prompt options
    and the final command of an invocation.

    Usage:
        executor = CommandExecutor()

        # Inherit the terminal's stdin/stdout/stderr
        executor.execute('echo "Hello"')

        # Capture output into buffers
        out, err = io.StringIO(), io.StringIO()
        executor.execute("git rev-parse HEAD", stdout=out, stderr=err)

        # Or let the executor do the capturing
        sha = executor.output("git rev-parse HEAD")
    """

    def __init__(self, shell: str = DEFAULT_SHELL) -> None:
        self.shell = shell

    def execute(
        self,
        command: str,
        stdin: Optional[IO] = None,
        stdout: Optional[IO] = None,
        stderr: Optional[IO] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> None:
        """
        Run a command, wiring the given streams.

        Args:
            command: Command text passed to ``<shell> -c``.
            stdin: Input stream, or None to inherit this process's stdin.
            stdout: Output stream, or None to inherit.
            stderr: Error stream, or None to inherit.
            env: Extra environment variables layered over this process's environment.
            cwd: Working directory for the command.

        Raises:
            CommandExecutionError: If the shell cannot be started, its piped output
                cannot be decoded, or it exits non-zero.
                Output already written to ``stderr`` is not inspected here.
        """
        stdin_arg = _stream_arg(stdin)
        stdin_text = stdin.read() if stdin_arg is subprocess.PIPE else None

        child_env = None
        if env:
            child_env = dict(os.environ)
            child_env.update(env)

        try:
            completed = subprocess.run(
                [self.shell, "-c", command],
                stdin=stdin_arg,
                stdout=_stream_arg(stdout),
                stderr=_stream_arg(stderr),
                input=stdin_text,
                env=child_env,
                cwd=cwd,
                encoding="utf-8",
                check=False,
            )
        except UnicodeDecodeError as e:
            raise CommandExecutionError(f"Command output is not valid UTF-8: {e}")
        except (OSError, ValueError) as e:
            # ValueError: a NUL byte in the command or an environment value
            logger.debug(f"Failed to start {self.shell}: {e}")
            raise CommandExecutionError(f"Could not run {self.shell}: {e}")

        # Copy piped output into the caller's buffers
        if completed.stdout is not None:
            stdout.write(completed.stdout)
        if completed.stderr is not None:
            stderr.write(completed.stderr)

        logger.debug(f"{self.shell} exited with status {completed.returncode}")
        if completed.returncode != 0:
            raise CommandExecutionError(
                f"Command exited with status {completed.returncode}.",
                returncode=completed.returncode,
            )

    def output(self, command: str, env: Optional[Dict[str, str]] = None) -> str:
        """
        Run a command and return its stdout, trimmed of trailing newlines and spaces.

        Anything written to stderr counts as a failure, whatever the exit status.

        Args:
            command: Command text passed to ``<shell> -c``.
            env: Extra environment variables for the command.

        Returns:
            The trimmed stdout text.

        Raises:
            CommandExecutionError: If the command wrote to stderr (the message is the
                stderr text verbatim), or failed to run or exited non-zero.
        """
        stdout_buffer = io.StringIO()
        stderr_buffer = io.StringIO()
        try:
            self.execute(command, stdout=stdout_buffer, stderr=stderr_buffer, env=env)
        except CommandExecutionError as e:
            captured = stderr_buffer.getvalue()
            if captured:
                raise CommandExecutionError(captured, returncode=e.returncode, stderr=captured)
            raise

        captured = stderr_buffer.getvalue()
        if captured:
            raise CommandExecutionError(captured, returncode=0, stderr=captured)

        return stdout_buffer.getvalue().rstrip("\n ")
