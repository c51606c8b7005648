"""``exec(...)`` resolver: runs an external command and uses its stdout.

This is how external secret stores are reached: the engine treats them as
opaque commands (``exec("op read op://vault/item/field")``).  The command runs
without a shell, with stdin closed and a per-call timeout.
"""

import asyncio
import shlex

from loguru import logger

from envlock.lib.resolver.base import BaseResolver, ResolutionContext, ResolutionError

_STDERR_EXCERPT = 200


class CommandResolver(BaseResolver):
    """Resolve a value from the standard output of an external command.

    One argument is split with ``shlex``; several arguments are used as the
    argv directly.  The output must be valid UTF-8; a single trailing newline
    (``\\n`` or ``\\r\\n``) is stripped from it.

    Args:
        timeout: Seconds to wait for the command before killing it.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        if timeout <= 0:
            msg = f"timeout must be positive, got {timeout}"
            raise ValueError(msg)
        self._timeout = timeout

    @property
    def kind(self) -> str:
        return "exec"

    @property
    def timeout(self) -> float:
        return self._timeout

    async def resolve(self, args: list[str], context: ResolutionContext) -> str:
        argv = self._argv(args)
        program = argv[0]
        logger.debug(f"Running resolver command {program!r} for {context.field_name}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(context.host_env),
            )
        except FileNotFoundError:
            raise ResolutionError(f"command not found: {program!r}", resolver=self.kind) from None
        except PermissionError:
            raise ResolutionError(f"command not executable: {program!r}", resolver=self.kind) from None
        except OSError as exc:
            msg = f"could not start {program!r}: {exc.__class__.__name__}"
            raise ResolutionError(msg, resolver=self.kind) from None

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError:
            msg = f"command {program!r} timed out after {self._timeout:g}s"
            raise ResolutionError(msg, resolver=self.kind) from None
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            msg = f"command {program!r} exited with status {proc.returncode}"
            excerpt = self._stderr_excerpt(stderr)
            if excerpt and not context.sensitive:
                msg = f"{msg}: {excerpt}"
            raise ResolutionError(msg, resolver=self.kind)

        try:
            value = stdout.decode("utf-8")
        except UnicodeDecodeError:
            msg = f"output of {program!r} is not valid UTF-8"
            raise ResolutionError(msg, resolver=self.kind) from None
        if value.endswith("\r\n"):
            return value[:-2]
        if value.endswith("\n"):
            return value[:-1]
        return value

    def _argv(self, args: list[str]) -> list[str]:
        if not args:
            msg = "a command is required"
            raise ResolutionError(msg, resolver=self.kind)
        if len(args) == 1:
            try:
                argv = shlex.split(args[0])
            except ValueError as exc:
                raise ResolutionError(f"cannot split command line: {exc}", resolver=self.kind) from None
        else:
            argv = list(args)
        if not argv or not argv[0]:
            msg = "a command is required"
            raise ResolutionError(msg, resolver=self.kind)
        return argv

    @staticmethod
    def _stderr_excerpt(stderr: bytes | None) -> str:
        if not stderr:
            return ""
        lines = [ln.strip() for ln in stderr.decode("utf-8", errors="replace").splitlines() if ln.strip()]
        if not lines:
            return ""
        excerpt = lines[-1]
        if len(excerpt) > _STDERR_EXCERPT:
            excerpt = excerpt[:_STDERR_EXCERPT] + "..."
        return excerpt
