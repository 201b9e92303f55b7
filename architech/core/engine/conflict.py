"""
Conflict resolver — what an action does when its target already exists.

Precedence: explicit action override → module conflict policy (first
glob that matches the project-relative path) → per-action default.
"""

from __future__ import annotations

import fnmatch
import logging
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass

from architech.core.engine.vfs import VirtualFileSystem
from architech.core.models.action import (
    AppendToFile,
    ConflictStrategy,
    CreateFile,
    PrependToFile,
)

logger = logging.getLogger(__name__)


class MergeKind:
    JSON = "json"
    ENV = "env"
    APPEND = "append"
    PREPEND = "prepend"
    MODIFIER = "modifier"


@dataclass(frozen=True)
class Decision:
    kind: ConflictStrategy
    merge_kind: str | None = None
    source: str = "default"            # "action", "policy" or "default"

    @property
    def proceeds(self) -> bool:
        return self.kind in (ConflictStrategy.REPLACE, ConflictStrategy.MERGE)


def merge_kind_for(path: str) -> str:
    """Merge flavour for CREATE_FILE with ``conflict: merge``."""
    name = posixpath.basename(path).lower()
    if name.endswith(".json"):
        return MergeKind.JSON
    if name.startswith(".env"):
        return MergeKind.ENV
    return MergeKind.APPEND


def match_policy(policy: Mapping[str, ConflictStrategy], relative_path: str) -> ConflictStrategy | None:
    """First policy entry whose glob matches the path or its basename."""
    basename = posixpath.basename(relative_path)
    for pattern, strategy in policy.items():
        if fnmatch.fnmatchcase(relative_path, pattern) or fnmatch.fnmatchcase(basename, pattern):
            return ConflictStrategy(strategy)
    return None


class ConflictResolver:
    """Stateless decision table over (action, target state, policy)."""

    def requested(
        self,
        action,
        relative_path: str,
        policy: Mapping[str, ConflictStrategy] | None = None,
    ) -> tuple[ConflictStrategy | None, str]:
        if action.conflict is not None:
            return action.conflict, "action"
        if isinstance(action, CreateFile) and action.overwrite:
            return ConflictStrategy.REPLACE, "action"
        matched = match_policy(policy or {}, relative_path)
        if matched is not None:
            return matched, "policy"
        return None, "default"

    def decide(
        self,
        action,
        target_path: str,
        vfs: VirtualFileSystem,
        relative_path: str | None = None,
        policy: Mapping[str, ConflictStrategy] | None = None,
    ) -> Decision:
        if isinstance(action, AppendToFile):
            return Decision(ConflictStrategy.MERGE, MergeKind.APPEND)
        if isinstance(action, PrependToFile):
            return Decision(ConflictStrategy.MERGE, MergeKind.PREPEND)

        exists = vfs.exists(target_path)
        requested, source = self.requested(action, relative_path or target_path, policy)

        if isinstance(action, CreateFile):
            if not exists:
                return Decision(ConflictStrategy.REPLACE, source="default")
            kind = requested or ConflictStrategy.ERROR
            merge_kind = merge_kind_for(target_path) if kind == ConflictStrategy.MERGE else None
            return Decision(kind, merge_kind, source if requested else "default")

        if exists and requested in (ConflictStrategy.SKIP, ConflictStrategy.ERROR, ConflictStrategy.REPLACE):
            return Decision(requested, source=source)
        return Decision(ConflictStrategy.MERGE, MergeKind.MODIFIER)
