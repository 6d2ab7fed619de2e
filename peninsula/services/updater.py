"""
Self-update orchestrator.

check() compares the local checkout with the tracked remote branch using git.
apply() runs the privileged update script as a child process under a
single-flight lock with a hard timeout. Only one apply may run per process;
a concurrent call is rejected, never queued.
"""

import asyncio
import logging
import os
import shlex
import threading
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from peninsula.core.config import UPDATE_TIMEOUT_SEC, get_settings
from peninsula.schemas.update import RepoState, UpdateCheckResult

logger = logging.getLogger(__name__)

# How long to wait for a killed child to be reaped before giving up on it.
KILL_GRACE_SEC = 5.0
SHORT_HASH_LEN = 8
READ_CHUNK_SIZE = 4096


class UpdateState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class UpdateError(Exception):
    """Base class for orchestrator failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UpdateInProgressError(UpdateError):
    """Raised when apply() is called while another apply is running."""


class UpdateCheckError(UpdateError):
    """Raised when any git step of check() fails (not a repo, no remote branch, network)."""


class UpdateSpawnError(UpdateError):
    """Raised when the update script cannot be started (missing, permission denied)."""


class UpdateScriptError(UpdateError):
    """Raised when the update script exits non-zero or is killed on timeout."""

    def __init__(
        self,
        exit_code: int | None,
        stdout: str,
        stderr: str,
        timed_out: bool = False,
    ) -> None:
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out
        if timed_out:
            message = "Update script timed out and was killed"
        else:
            message = f"Update script exited with code {exit_code}"
        super().__init__(message)


@dataclass(frozen=True)
class UpdateRunResult:
    exit_code: int
    stdout: str
    stderr: str


@dataclass
class _ProcessOutcome:
    exit_code: int | None
    stdout: str
    stderr: str
    timed_out: bool


async def _drain(stream: asyncio.StreamReader | None, sink: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        sink.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


class UpdateOrchestrator:
    """Drift detection and single-flight execution of the update script."""

    def __init__(
        self,
        repo_dir: str,
        script: str,
        command: Sequence[str] = (),
        remote: str = "origin",
        timeout: float = UPDATE_TIMEOUT_SEC,
        git_timeout: float = 60.0,
    ) -> None:
        self.repo_dir = repo_dir
        self.script = script
        self.command = list(command)
        self.remote = remote
        self.timeout = timeout
        self.git_timeout = git_timeout
        self._lock = asyncio.Lock()
        self._state = UpdateState.IDLE

    @property
    def state(self) -> UpdateState:
        return self._state

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the child and wait (bounded) for it to be reaped."""
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        except OSError as e:
            # EPERM when the child is setuid (sudo) and we are not root.
            logger.error(
                "Could not kill child process: %s",
                e,
                extra={"pid": proc.pid},
            )
        try:
            await asyncio.wait_for(proc.wait(), KILL_GRACE_SEC)
        except TimeoutError:
            logger.error(
                "Child process did not exit after kill",
                extra={"pid": proc.pid},
            )

    async def _collect(
        self, proc: asyncio.subprocess.Process, timeout: float
    ) -> _ProcessOutcome:
        """Capture stdout/stderr as they are produced until exit or timeout."""
        out: list[bytes] = []
        err: list[bytes] = []

        async def _run() -> int:
            await asyncio.gather(_drain(proc.stdout, out), _drain(proc.stderr, err))
            return await proc.wait()

        timed_out = False
        try:
            exit_code: int | None = await asyncio.wait_for(_run(), timeout)
        except TimeoutError:
            timed_out = True
            await self._terminate(proc)
            exit_code = proc.returncode
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise
        return _ProcessOutcome(exit_code, _decode(out), _decode(err), timed_out)

    async def _git(self, *args: str) -> str:
        cmd = ["git", "-C", self.repo_dir, *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise UpdateCheckError(f"Failed to run git: {e}") from e

        outcome = await self._collect(proc, self.git_timeout)
        if outcome.timed_out:
            raise UpdateCheckError(
                f"git {args[0]} timed out after {self.git_timeout:g}s"
            )
        if outcome.exit_code != 0:
            message = outcome.stderr.strip() or (
                f"git {' '.join(args)} exited with code {outcome.exit_code}"
            )
            raise UpdateCheckError(message)
        return outcome.stdout.strip()

    async def _repo_state(self, ref: str) -> tuple[str, RepoState]:
        """Return (full hash, RepoState) for a ref."""
        full_hash = await self._git("rev-parse", ref)
        message = await self._git("log", "-1", "--format=%s", ref)
        date = await self._git("log", "-1", "--format=%ci", ref)
        return full_hash, RepoState(
            hash=full_hash[:SHORT_HASH_LEN], message=message, date=date
        )

    async def check(self) -> UpdateCheckResult:
        """
        Compare local HEAD with the remote head of the current branch.

        Raises UpdateCheckError with git's diagnostic on any failure.
        """
        local_hash, local = await self._repo_state("HEAD")
        branch = await self._git("rev-parse", "--abbrev-ref", "HEAD")

        await self._git("fetch", self.remote)

        remote_ref = f"{self.remote}/{branch}"
        remote_hash, remote = await self._repo_state(remote_ref)
        behind = await self._git("rev-list", "--count", f"HEAD..{remote_ref}")
        try:
            commits_behind = int(behind)
        except ValueError as e:
            raise UpdateCheckError(f"Unexpected rev-list output: {behind!r}") from e

        result = UpdateCheckResult(
            update_available=local_hash != remote_hash,
            commits_behind=commits_behind,
            branch=branch,
            local=local,
            remote=remote,
        )
        logger.info(
            "Update check completed",
            extra={
                "branch": branch,
                "update_available": result.update_available,
                "commits_behind": commits_behind,
            },
        )
        return result

    async def apply(
        self, on_start: Callable[[], Awaitable[None]] | None = None
    ) -> UpdateRunResult:
        """
        Run the update script once. on_start is awaited after the lock is taken
        and before the script is spawned.

        Raises UpdateInProgressError, UpdateSpawnError or UpdateScriptError.
        The lock is released on every exit path.
        """
        # No await between the check and the acquire: asyncio.Lock.acquire on a
        # free lock completes without yielding, so two callers cannot both pass.
        if self._lock.locked():
            raise UpdateInProgressError("An update is already in progress")
        async with self._lock:
            self._state = UpdateState.RUNNING
            try:
                if on_start is not None:
                    await on_start()
                return await self._run_script()
            finally:
                self._state = UpdateState.IDLE

    async def _run_script(self) -> UpdateRunResult:
        cmd = [*self.command, self.script]
        logger.info("Starting update script", extra={"command": " ".join(cmd)})
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self.repo_dir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Update script could not be started: %s", e)
            raise UpdateSpawnError(str(e)) from e

        outcome = await self._collect(proc, self.timeout)
        if outcome.timed_out or outcome.exit_code != 0:
            logger.error(
                "Update script failed",
                extra={"exit_code": outcome.exit_code, "timed_out": outcome.timed_out},
            )
            raise UpdateScriptError(
                outcome.exit_code,
                outcome.stdout,
                outcome.stderr,
                timed_out=outcome.timed_out,
            )
        logger.info("Update script completed", extra={"exit_code": outcome.exit_code})
        return UpdateRunResult(
            exit_code=outcome.exit_code,
            stdout=outcome.stdout,
            stderr=outcome.stderr,
        )


_orchestrator: UpdateOrchestrator | None = None
_orchestrator_guard = threading.Lock()


def _build_orchestrator() -> UpdateOrchestrator:
    settings = get_settings()
    return UpdateOrchestrator(
        repo_dir=settings.REPO_DIR,
        script=settings.update_script_path,
        command=shlex.split(settings.UPDATE_COMMAND),
        remote=settings.GIT_REMOTE,
        git_timeout=settings.GIT_TIMEOUT_SEC,
    )


def get_update_orchestrator() -> UpdateOrchestrator:
    """
    Process-wide orchestrator built from settings (one lock per process).

    FastAPI resolves this dependency in its threadpool, so construction is
    guarded: concurrent first calls all receive the same instance.
    """
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_guard:
            if _orchestrator is None:
                _orchestrator = _build_orchestrator()
    return _orchestrator
