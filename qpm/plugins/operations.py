"""
External plugin operations (install, add, remove, update, restore).

Each operation shells out to the Quartz plugin CLI, streams its output lines
to an optional progress callback, and resolves to a single ``OperationResult``
parsed from the output.
"""

from __future__ import annotations

import asyncio
import os
import re
import shlex
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Optional, Sequence

from qpm.logging import get_logger

logger = get_logger(__name__)

LineKind = Literal["info", "success", "error", "warning"]
ProgressCallback = Callable[[str, LineKind], None]

PLUGIN_COMMAND_ENV_VAR = "QPM_PLUGIN_COMMAND"
DEFAULT_PLUGIN_COMMAND = ("npx", "quartz", "plugin")

_INSTALLED_MARKERS = ("installed", "Added", "built", "Restored", "cloned")
_UPDATED_RE = re.compile(r"Updated\s+(\S+)")
_SUMMARY_RE = re.compile(r"(?:Installed|Restored)\s+(\d+)\s+plugin")
_FAILED_RE = re.compile(r"(\d+)\s+failed")


@dataclass(frozen=True)
class OperationResult:
    """Terminal outcome of one external plugin operation."""

    success: bool
    installed: int = 0
    failed: int = 0
    updated: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()


def classify_line(line: str) -> LineKind:
    """Severity of a single output line for progress display."""
    if "✓" in line or "success" in line:
        return "success"
    if "✗" in line or "error" in line or "Error" in line:
        return "error"
    if "⚠" in line or "warning" in line:
        return "warning"
    return "info"


def parse_output(stdout: str, exit_ok: bool) -> OperationResult:
    """
    Parse plugin CLI stdout into an ``OperationResult``.

    Args:
        stdout: Full standard output of the command
        exit_ok: Whether the process exited with status 0

    Returns:
        Parsed result; summary lines override per-line counts
    """
    errors: list[str] = []
    updated: list[str] = []
    installed = 0
    failed = 0

    for line in filter(None, stdout.splitlines()):
        if "✗" in line:
            failed += 1
            errors.append(line.strip())
        if "✓" in line and any(marker in line for marker in _INSTALLED_MARKERS):
            installed += 1
        if "Updated" in line and "✓" in line:
            match = _UPDATED_RE.search(line)
            if match:
                updated.append(match.group(1))

    summary = _SUMMARY_RE.search(stdout)
    if summary:
        installed = int(summary.group(1))
    fail_summary = _FAILED_RE.search(stdout)
    if fail_summary:
        failed = int(fail_summary.group(1))

    return OperationResult(
        success=exit_ok and failed == 0,
        installed=installed,
        failed=failed,
        updated=tuple(updated),
        errors=tuple(errors),
    )


def resolve_plugin_command() -> tuple[str, ...]:
    """Plugin CLI prefix, overridable through ``QPM_PLUGIN_COMMAND``."""
    override = os.environ.get(PLUGIN_COMMAND_ENV_VAR, "").strip()
    if override:
        return tuple(shlex.split(override))
    return DEFAULT_PLUGIN_COMMAND


class PluginOperations:
    """Runs plugin CLI subcommands inside a project directory."""

    def __init__(
        self,
        cwd: Path | str,
        *,
        command: Optional[Sequence[str]] = None,
    ) -> None:
        self.cwd = Path(cwd)
        self.command = tuple(command) if command else resolve_plugin_command()

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def install(self, on_progress: Optional[ProgressCallback] = None) -> OperationResult:
        return await self._run_async(["install"], on_progress)

    async def add(self, sources: Sequence[str], on_progress: Optional[ProgressCallback] = None) -> OperationResult:
        return await self._run_async(["add", *sources], on_progress)

    async def remove(self, names: Sequence[str], on_progress: Optional[ProgressCallback] = None) -> OperationResult:
        return await self._run_async(["remove", *names], on_progress)

    async def update(
        self,
        names: Optional[Sequence[str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        return await self._run_async(["update", *(names or ())], on_progress)

    async def restore(self, on_progress: Optional[ProgressCallback] = None) -> OperationResult:
        return await self._run_async(["restore"], on_progress)

    async def _run_async(self, args: list[str], on_progress: Optional[ProgressCallback]) -> OperationResult:
        return await asyncio.to_thread(self.run, args, on_progress)

    # ------------------------------------------------------------------
    # Blocking runner
    # ------------------------------------------------------------------

    def run(self, args: Sequence[str], on_progress: Optional[ProgressCallback] = None) -> OperationResult:
        """
        Run one plugin subcommand to completion.

        Stdout lines are classified and forwarded to ``on_progress``; stderr
        lines are forwarded as errors and appended to the result errors.
        A command that cannot be started resolves to a failed result.
        """
        argv = [*self.command, *args]
        logger.info("Running plugin command: %s", " ".join(argv))
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(self.cwd),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to start plugin command %s: %s", argv[0], exc)
            return OperationResult(success=False, errors=(str(exc),))

        stderr_lines: list[str] = []
        stderr_thread = threading.Thread(
            target=self._drain_stderr,
            args=(process, stderr_lines, on_progress),
            name="plugin-stderr",
            daemon=True,
        )
        stderr_thread.start()

        stdout_lines: list[str] = []
        assert process.stdout is not None
        for raw_line in process.stdout:
            line = raw_line.rstrip("\r\n")
            if not line:
                continue
            stdout_lines.append(line)
            if on_progress is not None:
                on_progress(line, classify_line(line))

        returncode = process.wait()
        stderr_thread.join()

        result = parse_output("\n".join(stdout_lines), returncode == 0)
        if stderr_lines:
            result = OperationResult(
                success=result.success,
                installed=result.installed,
                failed=result.failed,
                updated=result.updated,
                errors=(*result.errors, *stderr_lines),
            )
        logger.info(
            "Plugin command '%s' finished with code %s (installed=%d failed=%d)",
            " ".join(args),
            returncode,
            result.installed,
            result.failed,
        )
        return result

    @staticmethod
    def _drain_stderr(
        process: subprocess.Popen,
        sink: list[str],
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if process.stderr is None:
            return
        for raw_line in process.stderr:
            line = raw_line.rstrip("\r\n")
            if not line:
                continue
            sink.append(line)
            if on_progress is not None:
                on_progress(line, "error")


def summarize_result(action: str, result: OperationResult, *, subject: str = "") -> tuple[str, str]:
    """
    Build one aggregate notification for an operation outcome.

    Args:
        action: One of install, restore, update, add, remove
        result: Parsed operation result
        subject: Plugin name for remove

    Returns:
        (message, severity)
    """
    if action == "remove":
        if result.success:
            return f"Removed {subject}".strip(), "info"
        return "Remove failed", "error"
    if action == "add":
        if result.success:
            return f"Added {max(result.installed, 1)} plugin(s)", "info"
        return "Failed to add plugin", "error"
    if action == "update":
        if result.success:
            return f"Updated {len(result.updated)} plugin(s)", "info"
        if result.updated:
            return f"Updated {len(result.updated)} plugin(s), some updates failed", "warning"
        return "Some updates failed", "error"

    verb = "Restored" if action == "restore" else "Installed"
    if result.success:
        return f"{verb} {result.installed} plugin(s)", "info"
    if result.installed:
        return f"{verb} {result.installed} plugin(s), {result.failed} failed", "warning"
    noun = "restores" if action == "restore" else "installs"
    return f"Some {noun} failed", "error"
