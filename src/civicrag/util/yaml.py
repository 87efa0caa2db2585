import os
import re
from pathlib import Path
from typing import Any, cast

import structlog
import yaml  # type: ignore[import-untyped]

_logger = structlog.get_logger()

# $(NAME) or $(NAME:-fallback)
_PLACEHOLDER = re.compile(r"\$\((?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^)]*))?\)")


class _Substitution:
    def __init__(self, required_vars: set[str]) -> None:
        self.required_vars = required_vars
        self.missing: set[str] = set()

    def __call__(self, match: re.Match[str]) -> str:
        name = match.group("name")
        value = os.getenv(name)
        if value:
            return value
        fallback = match.group("fallback")
        if fallback is not None:
            return fallback
        if name in self.required_vars:
            self.missing.add(name)
        return ""

    def walk(self, node: Any) -> Any:
        match node:
            case str():
                return _PLACEHOLDER.sub(self, node)
            case dict():
                return {key: self.walk(value) for key, value in node.items()}
            case list():
                return [self.walk(item) for item in node]
            case _:
                return node


def resolve_placeholders(node: Any, required_vars: set[str] | None = None) -> Any:
    """Replace ``$(VAR)`` and ``$(VAR:-fallback)`` in every string of ``node``.

    Unset or empty variables resolve to the fallback, or to an empty string.
    All missing ``required_vars`` are reported together in one
    :class:`ValueError`.
    """
    substitution = _Substitution(required_vars or set())
    resolved = substitution.walk(node)
    if substitution.missing:
        names = ", ".join(sorted(substitution.missing))
        raise ValueError(f"Missing required environment variable: {names}")
    return resolved


def load_yaml_config(
    config_path: Path,
    defaults: dict[str, Any] | None = None,
    required_vars: set[str] | None = None,
) -> dict[str, Any]:
    """Read a YAML mapping and resolve its environment placeholders.

    A missing file yields ``defaults`` (or an empty dict) with a warning.
    """
    if not config_path.exists():
        _logger.warning("config_not_found", path=str(config_path))
        return dict(defaults or {})

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping at the top level")

    return cast(dict[str, Any], resolve_placeholders(raw, required_vars))
