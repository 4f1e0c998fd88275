"""
anyterraform/utils/async_command_runner.py

Provides asynchronous subprocess helpers used by the Terraform driver:

  - run_command: run a command to completion, capturing stdout and stderr.
  - run_command_streaming: run a command while copying its combined
    stdout/stderr to a caller-supplied sink, line by line.

Neither helper retries. A failing command raises CommandError carrying the
exit code and the captured output, so callers can decide what to report.

Usage example:
    from anyterraform.utils.async_command_runner import run_command, CommandError

    try:
        output = await run_command(["terraform", "version"])
        print(output)
    except CommandError as err:
        print(f"Command failed: {err}")
"""

from __future__ import annotations

import os
import asyncio
from typing import Dict, List, Optional, TextIO

# Longest single output line accepted when streaming.
_STREAM_LIMIT = 1024 * 1024


class CommandError(Exception):
    """Represents a failure when executing a local command.

    Attributes:
        message (str): The error message describing the command failure.
        return_code (Optional[int]): The exit code if available.
        output (str): Whatever the command wrote before it failed.
    """

    def __init__(
        self, message: str, return_code: Optional[int] = None, output: str = ""
    ) -> None:
        """
        Initialize a CommandError.

        Args:
            message (str): The error message describing the command failure.
            return_code (Optional[int]): The exit code if known.
            output (str): Captured stdout/stderr of the command.
        """
        super().__init__(message)
        self.return_code = return_code
        self.output = output


def _build_env(
    env: Optional[Dict[str, str]], inherit_env: bool
) -> Optional[Dict[str, str]]:
    """Merge `env` over the current process environment (or over nothing)."""
    if env is None and inherit_env:
        return None
    proc_env = os.environ.copy() if inherit_env else {}
    if env:
        proc_env.update(env)
    return proc_env


async def _spawn(
    command: List[str],
    *,
    env: Optional[Dict[str, str]],
    cwd: Optional[str],
    merge_stderr: bool,
) -> asyncio.subprocess.Process:
    try:
        return await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=(
                asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.PIPE
            ),
            env=env,
            cwd=cwd,
            limit=_STREAM_LIMIT,
        )
    except OSError as exc:
        # Missing binary, bad cwd or permissions: the process never started.
        raise CommandError(f"Could not start {command[0]!r}: {exc}") from exc


async def run_command(
    command: List[str],
    *,
    sensitive: bool = True,
    env: Optional[Dict[str, str]] = None,
    inherit_env: bool = True,
    cwd: Optional[str] = None,
    combine_output: bool = False,
    successful_return_codes: List[int] = [0],
) -> str:
    """
    Executes a local command in a subprocess and waits for it to exit.

    When `sensitive=True`, the command, stdout and stderr are omitted from the
    error message (they remain available on `CommandError.output`).

    Args:
        command (List[str]):
            The command and arguments to execute.
        sensitive (bool):
            If True, hides command details in the raised error message.
        env (Optional[Dict[str, str]]):
            Environment variables to add or override.
        inherit_env (bool):
            If False, `env` is the complete environment of the child.
        cwd (Optional[str]):
            Working directory for the command.
        combine_output (bool):
            If True, stderr is merged into stdout and both are returned.
        successful_return_codes (List[int]):
            Which return codes won't be treated as errors. Defaults to [0].

    Returns:
        str: The captured stdout (or combined output) on success.

    Raises:
        CommandError: If the command cannot be started or exits with a code
            not in `successful_return_codes`.
    """
    proc = await _spawn(
        command,
        env=_build_env(env, inherit_env),
        cwd=cwd,
        merge_stderr=combine_output,
    )
    stdout_bytes, stderr_bytes = await proc.communicate()
    stdout_str = stdout_bytes.decode(errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode(errors="replace").strip()

    if proc.returncode not in successful_return_codes:
        captured = "\n".join(s for s in (stdout_str, stderr_str) if s)
        detail = ""
        if not sensitive:
            detail = (
                f"\nCommand: {' '.join(command)}"
                f"\nStdout: {stdout_str}"
                f"\nStderr: {stderr_str}"
            )
        raise CommandError(
            f"Command failed with return code {proc.returncode}.{detail}",
            proc.returncode,
            captured,
        )

    return stdout_str


async def run_command_streaming(
    command: List[str],
    sink: TextIO,
    *,
    env: Optional[Dict[str, str]] = None,
    inherit_env: bool = True,
    cwd: Optional[str] = None,
) -> str:
    """
    Executes a local command, writing its combined stdout/stderr to `sink` as
    the lines arrive. The caller is suspended until the process exits.

    Args:
        command (List[str]):
            The command and arguments to execute.
        sink (TextIO):
            Where each decoded output line is written (and flushed).
        env (Optional[Dict[str, str]]):
            Environment variables to add or override.
        inherit_env (bool):
            If False, `env` is the complete environment of the child.
        cwd (Optional[str]):
            Working directory for the command.

    Returns:
        str: The full combined output, for diagnostics.

    Raises:
        CommandError: If the command cannot be started, writes a line longer
            than the stream limit, or exits non-zero. The error carries the
            combined output read so far; an unfinished process is killed.
    """
    proc = await _spawn(
        command,
        env=_build_env(env, inherit_env),
        cwd=cwd,
        merge_stderr=True,
    )
    assert proc.stdout is not None, "stdout pipe unexpectedly None"

    lines: List[str] = []
    try:
        while True:
            raw = await proc.stdout.readline()
            if not raw:
                break
            line = raw.decode(errors="replace")
            lines.append(line)
            sink.write(line)
            sink.flush()
        return_code = await proc.wait()
    except (ValueError, asyncio.LimitOverrunError) as exc:
        raise CommandError(
            f"Could not read output of {command[0]!r}: {exc}",
            None,
            "".join(lines),
        ) from exc
    finally:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                # Exited between the check and the kill; wait() reaps it.
                pass
            await proc.wait()

    output = "".join(lines)
    if return_code != 0:
        raise CommandError(
            f"Command failed with return code {return_code}.",
            return_code,
            output,
        )
    return output
