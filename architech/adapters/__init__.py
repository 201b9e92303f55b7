"""Adapters — bindings to the real filesystem and subprocesses.

Public re-exports for convenient access.
"""

from architech.adapters.base import CommandReceipt, CommandRequest, CommandRunner
from architech.adapters.mock import MockCommandRunner
from architech.adapters.shell.command import ShellCommandRunner
from architech.adapters.shell.filesystem import DiskFilesystem

__all__ = [
    "CommandReceipt",
    "CommandRequest",
    "CommandRunner",
    "DiskFilesystem",
    "MockCommandRunner",
    "ShellCommandRunner",
]
