"""Building and validating ContextConfig values.

Configuration is loaded from the environment (or any mapping) and
normalized the same way the settings form always has:
- privacy levels: comma-separated, trimmed, lowercased
- tags: comma-separated, trimmed, lowercased, leading '#' removed
- depth and day counts: integers, clamped to at least 1
"""

import math
import os
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from logger import logger
from .config import DEFAULT_LINK_DEPTH, DEFAULT_PRIVACY_LEVELS, DEFAULT_RECENT_DAYS
from .errors import ConfigError
from .types import ContextConfig, RecentItemsConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _split(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        return value.split(",")
    items = list(value)
    for item in items:
        if not isinstance(item, str):
            raise ConfigError(f"Expected a list of strings, got {item!r}")
    return items


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


def normalize_privacy_levels(value: str | Iterable[str]) -> tuple[str, ...]:
    """Normalize privacy levels ("Public, none" -> ("public", "none"))."""
    return _dedupe(p.strip().lower() for p in _split(value))


def normalize_tags(value: str | Iterable[str]) -> tuple[str, ...]:
    """Normalize tags ("#Project-A, important" -> ("project-a", "important"))."""
    return _dedupe(t.strip().lower().lstrip("#").strip() for t in _split(value))


def clamp_count(value: str | int | float, name: str) -> int:
    """Parse a positive integer setting, flooring and clamping to >= 1.

    Raises:
        ConfigError: If the value is not numeric
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise ConfigError(f"{name} must be a finite number, got {value!r}")

    clamped = max(1, math.floor(number))
    if clamped != number:
        logger.warning(f"{name} {value!r} normalized to {clamped}")
    return clamped


def parse_bool(value: str | bool, name: str) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def load_context_config(env: Optional[Mapping[str, str]] = None) -> ContextConfig:
    """Build a ContextConfig from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Normalized ContextConfig

    Raises:
        ConfigError: If a numeric or boolean setting cannot be parsed
    """
    env = os.environ if env is None else env

    depth = clamp_count(env.get("CONTEXT_LINK_DEPTH", DEFAULT_LINK_DEPTH), "CONTEXT_LINK_DEPTH")
    privacy = env.get("CONTEXT_PRIVACY_LEVELS")
    required = env.get("CONTEXT_REQUIRED_TAGS", "")
    excluded = env.get("CONTEXT_EXCLUDED_TAGS", "")
    recent_enabled = parse_bool(
        env.get("CONTEXT_INCLUDE_RECENT_DAILY", "false"), "CONTEXT_INCLUDE_RECENT_DAILY"
    )
    recent_days = clamp_count(
        env.get("CONTEXT_RECENT_DAYS", DEFAULT_RECENT_DAYS), "CONTEXT_RECENT_DAYS"
    )

    return ContextConfig(
        max_depth=depth,
        allowed_privacy=(
            DEFAULT_PRIVACY_LEVELS if privacy is None else normalize_privacy_levels(privacy)
        ),
        required_tags=normalize_tags(required),
        excluded_tags=normalize_tags(excluded),
        recent_items=RecentItemsConfig(enabled=recent_enabled, count=recent_days),
    )


def merge_overrides(
    config: ContextConfig,
    max_depth: Optional[int] = None,
    allowed_privacy: Optional[str | Iterable[str]] = None,
    required_tags: Optional[str | Iterable[str]] = None,
    excluded_tags: Optional[str | Iterable[str]] = None,
    recent_enabled: Optional[bool] = None,
    recent_count: Optional[int] = None,
) -> ContextConfig:
    """Return a copy of config with the given values replaced.

    Depth and count overrides are taken as-is so that validate_config
    can reject bad caller input instead of silently clamping it.
    """
    updates = {}
    if max_depth is not None:
        updates["max_depth"] = max_depth
    if allowed_privacy is not None:
        updates["allowed_privacy"] = normalize_privacy_levels(allowed_privacy)
    if required_tags is not None:
        updates["required_tags"] = normalize_tags(required_tags)
    if excluded_tags is not None:
        updates["excluded_tags"] = normalize_tags(excluded_tags)

    if recent_enabled is not None or recent_count is not None:
        updates["recent_items"] = RecentItemsConfig(
            enabled=config.recent_items.enabled if recent_enabled is None else recent_enabled,
            count=config.recent_items.count if recent_count is None else recent_count,
        )

    return replace(config, **updates)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def validate_depth(max_depth: object) -> None:
    """Reject a link depth that is not an integer >= 1."""
    if not _is_positive_int(max_depth):
        raise ConfigError(
            f"Invalid link depth ({max_depth!r}). Please set it to 1 or greater."
        )


def validate_config(config: ContextConfig) -> None:
    """Check a ContextConfig before a run starts.

    Raises:
        ConfigError: On the first problem found
    """
    validate_depth(config.max_depth)

    for name in ("allowed_privacy", "required_tags", "excluded_tags"):
        values = getattr(config, name)
        if isinstance(values, str) or not all(isinstance(v, str) for v in values):
            raise ConfigError(f"{name} must be a collection of strings, got {values!r}")

    if not isinstance(config.recent_items.enabled, bool):
        raise ConfigError(
            f"recent_items.enabled must be a boolean, got {config.recent_items.enabled!r}"
        )
    if config.recent_items.enabled and not _is_positive_int(config.recent_items.count):
        raise ConfigError(
            f"Invalid number of recent days ({config.recent_items.count!r}). "
            "Please set it to 1 or greater."
        )
