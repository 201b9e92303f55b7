"""Path resolution — logical keys, overrides and project structures."""

from architech.core.paths.defaults import default_schema
from architech.core.paths.resolver import PathResolver, levenshtein, resolve, suggest_keys
from architech.core.paths.validation import OverrideValidation, validate_overrides

__all__ = [
    "OverrideValidation",
    "PathResolver",
    "default_schema",
    "levenshtein",
    "resolve",
    "suggest_keys",
    "validate_overrides",
]
