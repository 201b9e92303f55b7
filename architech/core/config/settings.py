"""
Engine settings — process-level knobs, overridable from the environment.

    ARCHITECH_COMMAND_TIMEOUT   seconds before RUN_COMMAND is killed (300)
    ARCHITECH_MANIFEST          package manifest path (package.json)
    ARCHITECH_AUDIT_DIR         audit ledger directory (.architech)
    ARCHITECH_STRUCTURE         default project structure (single-app)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from architech.core.models.paths import ProjectStructure

logger = logging.getLogger(__name__)

_ENV_FIELDS = {
    "ARCHITECH_COMMAND_TIMEOUT": "command_timeout",
    "ARCHITECH_MANIFEST": "manifest_path",
    "ARCHITECH_AUDIT_DIR": "audit_dir",
    "ARCHITECH_STRUCTURE": "default_structure",
}


class EngineSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    command_timeout: float = Field(default=300.0, gt=0)
    manifest_path: str = "package.json"
    audit_dir: str = ".architech"
    default_structure: ProjectStructure = ProjectStructure.SINGLE_APP

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> EngineSettings:
        """Build settings from ``ARCHITECH_*`` variables, then keyword overrides.

        Raises:
            ConfigError: If a variable holds an invalid value.
        """
        from architech.core.config.loader import ConfigError
        from architech.core.models.action import describe_validation_error

        env = os.environ if environ is None else environ
        values = {field: env[var] for var, field in _ENV_FIELDS.items() if env.get(var, "").strip()}
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            settings = cls.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"Invalid engine settings: {describe_validation_error(e)}") from e
        logger.debug("Engine settings: %s", settings.model_dump(mode="json"))
        return settings
