"""
Action and ActionResult models — the blueprint execution contract.

Actions are immutable, declarative instructions produced by blueprints.
They form a closed tagged union keyed on ``type``; a payload that does not
match its tag fails validation at construction time.

ActionResults describe what one action did. The interpreter returns a
result for every action it is given and never raises: failures are
captured in the result's ``error`` entry.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from architech.core.errors import ErrorCode, ValidationError


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ActionType(StrEnum):
    INSTALL_PACKAGES = "INSTALL_PACKAGES"
    ADD_SCRIPT = "ADD_SCRIPT"
    ADD_ENV_VAR = "ADD_ENV_VAR"
    CREATE_FILE = "CREATE_FILE"
    APPEND_TO_FILE = "APPEND_TO_FILE"
    PREPEND_TO_FILE = "PREPEND_TO_FILE"
    RUN_COMMAND = "RUN_COMMAND"
    MERGE_JSON = "MERGE_JSON"
    ADD_TS_IMPORT = "ADD_TS_IMPORT"
    ENHANCE_FILE = "ENHANCE_FILE"
    MERGE_CONFIG = "MERGE_CONFIG"
    WRAP_CONFIG = "WRAP_CONFIG"
    EXTEND_SCHEMA = "EXTEND_SCHEMA"
    ADD_DEPENDENCY = "ADD_DEPENDENCY"
    ADD_DEV_DEPENDENCY = "ADD_DEV_DEPENDENCY"


class ConflictStrategy(StrEnum):
    """What to do when an action targets a path that already has content."""

    ERROR = "error"
    SKIP = "skip"
    REPLACE = "replace"
    MERGE = "merge"


class MergeStrategy(StrEnum):
    DEEP = "deep"
    SHALLOW = "shallow"
    REPLACE = "replace"

    @classmethod
    def parse(cls, value: Any) -> MergeStrategy:
        """Accept the long spellings used by older blueprints."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        aliases = {
            "deep-merge": "deep",
            "merge": "deep",
            "shallow-merge": "shallow",
            "override": "replace",
        }
        return cls(aliases.get(text, text))


# ── Action variants ─────────────────────────────────────────────


class _ActionBase(BaseModel):
    """Fields shared by every action variant."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    condition: str | None = None            # predicate over module config
    conflict: ConflictStrategy | None = None  # explicit resolution override
    for_each: str | None = None             # dotted path to a list to expand over

    @property
    def target(self) -> str | None:
        """The file this action writes to, if any."""
        return getattr(self, "path", None)

    def describe(self) -> str:
        """Short human label used in logs and error messages."""
        target = self.target
        return f"{self.type} {target}" if target else str(self.type)  # type: ignore[attr-defined]


def _check_packages(value: list[str]) -> list[str]:
    cleaned = [p.strip() for p in value if p and p.strip()]
    if not cleaned:
        raise ValueError("at least one package is required")
    return cleaned


def _check_path(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("path must not be empty")
    return value.strip()


class InstallPackages(_ActionBase):
    type: Literal["INSTALL_PACKAGES"] = "INSTALL_PACKAGES"
    packages: list[str]
    is_dev: bool = False

    check_packages = field_validator("packages")(_check_packages)


class AddDependency(_ActionBase):
    type: Literal["ADD_DEPENDENCY"] = "ADD_DEPENDENCY"
    packages: list[str]
    is_dev: bool = False

    check_packages = field_validator("packages")(_check_packages)


class AddDevDependency(_ActionBase):
    type: Literal["ADD_DEV_DEPENDENCY"] = "ADD_DEV_DEPENDENCY"
    packages: list[str]

    check_packages = field_validator("packages")(_check_packages)


class AddScript(_ActionBase):
    type: Literal["ADD_SCRIPT"] = "ADD_SCRIPT"
    name: str
    command: str
    path: str = "package.json"

    check_path = field_validator("path")(_check_path)


class AddEnvVar(_ActionBase):
    type: Literal["ADD_ENV_VAR"] = "ADD_ENV_VAR"
    key: str
    value: str = ""
    path: str = ".env"
    description: str = ""
    overwrite: bool = False

    check_path = field_validator("path")(_check_path)

    @field_validator("key")
    @classmethod
    def check_key(cls, value: str) -> str:
        value = value.strip()
        if not value or "=" in value or any(c.isspace() for c in value):
            raise ValueError(f"invalid environment variable name: {value!r}")
        return value


class CreateFile(_ActionBase):
    type: Literal["CREATE_FILE"] = "CREATE_FILE"
    path: str
    content: str = ""
    overwrite: bool = False  # legacy spelling of conflict=replace

    check_path = field_validator("path")(_check_path)


class AppendToFile(_ActionBase):
    type: Literal["APPEND_TO_FILE"] = "APPEND_TO_FILE"
    path: str
    content: str

    check_path = field_validator("path")(_check_path)


class PrependToFile(_ActionBase):
    type: Literal["PREPEND_TO_FILE"] = "PREPEND_TO_FILE"
    path: str
    content: str

    check_path = field_validator("path")(_check_path)


class RunCommand(_ActionBase):
    type: Literal["RUN_COMMAND"] = "RUN_COMMAND"
    command: str | list[str]
    working_dir: str | None = None
    timeout: float | None = None
    best_effort: bool = False

    @field_validator("command")
    @classmethod
    def check_command(cls, value: str | list[str]) -> str | list[str]:
        if isinstance(value, list):
            if not value or not str(value[0]).strip():
                raise ValueError("command must not be empty")
        elif not value.strip():
            raise ValueError("command must not be empty")
        return value

    def describe(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"{self.type} `{cmd}`"


class MergeJson(_ActionBase):
    type: Literal["MERGE_JSON"] = "MERGE_JSON"
    path: str
    content: dict[str, Any]
    merge_strategy: MergeStrategy = MergeStrategy.DEEP

    check_path = field_validator("path")(_check_path)

    @field_validator("merge_strategy", mode="before")
    @classmethod
    def parse_strategy(cls, value: Any) -> MergeStrategy:
        return MergeStrategy.parse(value)


class ImportDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    module_specifier: str
    named_imports: list[str] = Field(default_factory=list)
    default_import: str | None = None
    namespace_import: str | None = None
    type_only: bool = False


class AddTsImport(_ActionBase):
    type: Literal["ADD_TS_IMPORT"] = "ADD_TS_IMPORT"
    path: str
    imports: list[ImportDefinition]

    check_path = field_validator("path")(_check_path)


class EnhanceFile(_ActionBase):
    type: Literal["ENHANCE_FILE"] = "ENHANCE_FILE"
    path: str
    modifier: str
    params: dict[str, Any] = Field(default_factory=dict)
    fallback: Literal["create", "skip", "error"] = "create"

    check_path = field_validator("path")(_check_path)


class MergeConfig(_ActionBase):
    type: Literal["MERGE_CONFIG"] = "MERGE_CONFIG"
    path: str
    config: dict[str, Any]
    strategy: MergeStrategy = MergeStrategy.DEEP
    export_name: str = "default"

    check_path = field_validator("path")(_check_path)

    @field_validator("strategy", mode="before")
    @classmethod
    def parse_strategy(cls, value: Any) -> MergeStrategy:
        return MergeStrategy.parse(value)


class WrapConfig(_ActionBase):
    type: Literal["WRAP_CONFIG"] = "WRAP_CONFIG"
    path: str
    wrapper: str
    import_from: str | None = None
    options: dict[str, Any] | None = None
    export_name: str = "default"

    check_path = field_validator("path")(_check_path)


class SchemaTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    definition: str


class ExtendSchema(_ActionBase):
    type: Literal["EXTEND_SCHEMA"] = "EXTEND_SCHEMA"
    path: str
    tables: list[SchemaTable]
    additional_imports: list[str] = Field(default_factory=list)
    import_from: str = "drizzle-orm/pg-core"

    check_path = field_validator("path")(_check_path)


Action = Annotated[
    Union[
        InstallPackages,
        AddScript,
        AddEnvVar,
        CreateFile,
        AppendToFile,
        PrependToFile,
        RunCommand,
        MergeJson,
        AddTsImport,
        EnhanceFile,
        MergeConfig,
        WrapConfig,
        ExtendSchema,
        AddDependency,
        AddDevDependency,
    ],
    Field(discriminator="type"),
]

ACTION_CLASSES: tuple[type[_ActionBase], ...] = (
    InstallPackages,
    AddScript,
    AddEnvVar,
    CreateFile,
    AppendToFile,
    PrependToFile,
    RunCommand,
    MergeJson,
    AddTsImport,
    EnhanceFile,
    MergeConfig,
    WrapConfig,
    ExtendSchema,
    AddDependency,
    AddDevDependency,
)

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)

# Actions that only accumulate into the pending dependency set.
DEPENDENCY_ACTIONS = (InstallPackages, AddDependency, AddDevDependency)


def parse_action(data: Any) -> _ActionBase:
    """Validate a raw mapping (or an existing action) into an Action.

    Raises:
        ValidationError: If the tag is unknown or the payload does not
            match it.
    """
    if isinstance(data, ACTION_CLASSES):
        return data
    try:
        return _ACTION_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        tag = data.get("type") if isinstance(data, dict) else None
        raise ValidationError(
            f"Invalid action{f' {tag}' if tag else ''}: {describe_validation_error(e)}",
            code=ErrorCode.INVALID_ACTION,
        ) from e


def describe_validation_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "")
    extra = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{loc}: {msg}{extra}" if loc else f"{msg}{extra}"


# ── Results ─────────────────────────────────────────────────────


class ActionResult(BaseModel):
    """Outcome of applying one action.

    ``note`` is informational (condition skips, dry-run notices) and is
    never promoted to a warning.
    """

    action_type: str
    action_index: int = 0
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    artifact: str | None = None
    warning: str | None = None
    note: str | None = None
    output: str = ""
    error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        action_type: str,
        action_index: int = 0,
        artifact: str | None = None,
        **kwargs: Any,
    ) -> ActionResult:
        """Create a success result."""
        return cls(
            action_type=action_type,
            action_index=action_index,
            status="ok",
            artifact=artifact,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        action_type: str,
        action_index: int,
        error: dict[str, Any],
        **kwargs: Any,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(
            action_type=action_type,
            action_index=action_index,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        action_type: str,
        action_index: int = 0,
        note: str | None = None,
        warning: str | None = None,
        **kwargs: Any,
    ) -> ActionResult:
        """Create a skip result."""
        return cls(
            action_type=action_type,
            action_index=action_index,
            status="skipped",
            note=note,
            warning=warning,
            **kwargs,
        )
