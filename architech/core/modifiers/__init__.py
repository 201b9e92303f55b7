"""Modifiers — named, pure content transforms used by ENHANCE_FILE and friends.

Public re-exports plus ``default_registry()``, which builds a registry
holding every built-in modifier.
"""

from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.css import CSS_ENHANCER
from architech.core.modifiers.env import ENV_MERGER
from architech.core.modifiers.js_config import JS_CONFIG_MERGER
from architech.core.modifiers.js_export_wrapper import JS_EXPORT_WRAPPER
from architech.core.modifiers.json_object import JSON_OBJECT_MERGER
from architech.core.modifiers.jsx_wrapper import JSX_WRAPPER
from architech.core.modifiers.package_json import PACKAGE_JSON_MERGER
from architech.core.modifiers.registry import ModifierRegistry
from architech.core.modifiers.schema_extender import SCHEMA_EXTENDER
from architech.core.modifiers.ts_module import TS_MODULE_ENHANCER
from architech.core.modifiers.tsconfig import TSCONFIG_ENHANCER

BUILTIN_MODIFIERS = (
    PACKAGE_JSON_MERGER,
    JSON_OBJECT_MERGER,
    TSCONFIG_ENHANCER,
    JS_CONFIG_MERGER,
    JS_EXPORT_WRAPPER,
    JSX_WRAPPER,
    TS_MODULE_ENHANCER,
    CSS_ENHANCER,
    SCHEMA_EXTENDER,
    ENV_MERGER,
)


def default_registry() -> ModifierRegistry:
    """A fresh registry with every built-in modifier registered."""
    return ModifierRegistry(list(BUILTIN_MODIFIERS))


__all__ = [
    "BUILTIN_MODIFIERS",
    "ModifierDefinition",
    "ModifierParams",
    "ModifierRegistry",
    "default_registry",
]
