"""
Mock command runner — test double for RUN_COMMAND.

Records every request and returns success unless a response has been
configured for the command.
"""

from __future__ import annotations

from architech.adapters.base import CommandReceipt, CommandRequest, CommandRunner


class MockCommandRunner(CommandRunner):
    """Command runner that never spawns a process.

    Responses are keyed on the command's display string
    (``"npm install"`` or ``"npx prisma generate"`` for list commands).
    """

    def __init__(self, available: bool = True, default_stdout: str = "[mock] executed"):
        self._available = available
        self._default_stdout = default_stdout
        self._responses: dict[str, CommandReceipt] = {}
        self._call_log: list[CommandRequest] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[CommandRequest]:
        """All requests this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        return [r.display for r in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, command: str, receipt: CommandReceipt) -> None:
        """Set a custom receipt for a specific command."""
        self._responses[command] = receipt

    def set_failure(self, command: str, stderr: str = "mock failure", return_code: int = 1) -> None:
        """Configure a command to exit non-zero."""
        self._responses[command] = CommandReceipt(
            command=command, return_code=return_code, stderr=stderr
        )

    def set_timeout(self, command: str) -> None:
        """Configure a command to time out."""
        self._responses[command] = CommandReceipt(command=command, timed_out=True)

    def run(self, request: CommandRequest) -> CommandReceipt:
        self._call_log.append(request)
        if request.display in self._responses:
            return self._responses[request.display]
        return CommandReceipt(
            command=request.display, return_code=0, stdout=self._default_stdout
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
