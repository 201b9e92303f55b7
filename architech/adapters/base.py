"""
Command runner base — the contract between the interpreter and subprocesses.

The interpreter never spawns processes itself. It hands a CommandRequest
to a CommandRunner and gets a CommandReceipt back. Runners NEVER raise:
timeouts, missing binaries and non-zero exits are all captured in the
receipt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

DEFAULT_TIMEOUT = 300.0


class CommandRequest(BaseModel):
    """Everything a runner needs to execute one command."""

    command: str | list[str]
    cwd: str = "."
    timeout: float = DEFAULT_TIMEOUT
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def display(self) -> str:
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


class CommandReceipt(BaseModel):
    """Result of running one command."""

    command: str
    return_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    error: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.return_code == 0 and not self.timed_out and self.error is None

    def summary(self) -> str:
        """One-line description of a failure."""
        if self.timed_out:
            return f"`{self.command}` timed out"
        if self.error:
            return f"`{self.command}` could not be run: {self.error}"
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else ""
        base = f"`{self.command}` exited with code {self.return_code}"
        return f"{base}: {detail}" if detail else base


class CommandRunner(ABC):
    """Abstract base class for command runners.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, run
        3. Pass it to the BlueprintExecutor
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether commands can be run at all. Never raises."""

    @abstractmethod
    def run(self, request: CommandRequest) -> CommandReceipt:
        """Run the command and return a receipt.

        MUST never raise exceptions.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
