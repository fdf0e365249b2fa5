# settings.py
"""
Validates and completes the particle settings.

This module turns a partial, possibly malformed settings mapping into a
complete one where every recognized parameter holds a finite number inside
its declared range. Out-of-range values are never an error: they are
clamped (or defaulted) and the outcome is logged.
"""
import logging
import math
import numbers
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from constants import (
    AREA_PER_PARTICLE, FULL_TURN, MAX_SAFE_INTEGER, UNSET_SENTINEL
)

# --- Data Contracts ---
#
# resolve_settings(partial: Optional[Dict[str, Any]], width: int, height: int) -> Dict[str, float]:
#   - Inputs:
#     - partial: any subset of SETTING_KEYS (may be None or empty). Absent
#       keys and the sentinel -1 both mean "use the default".
#     - width, height: surface bounds in pixels, both must be positive.
#   - Outputs: a new dict holding exactly SETTING_KEYS, in order.
#   - Side Effects: DEBUG log line per key, WARNING for malformed/unknown keys.
#   - Raises: BoundaryError if width or height is not positive.
#   - Invariants: every value is a finite float within [min, max];
#     resolve_settings(resolve_settings(p, w, h), w, h) == resolve_settings(p, w, h).


class BoundaryError(ValueError):
    """Raised when the drawable surface is unavailable or has no area."""


# A bound or default is computed from the settings resolved so far and the
# surface size, since later keys depend on earlier ones (e.g. size_max).
Rule = Callable[[Dict[str, float], int, int], float]


class SettingRule(NamedTuple):
    key: str
    default: Rule
    minimum: Rule
    maximum: Rule


def _const(value: float) -> Rule:
    return lambda resolved, width, height: value


def _pos_low(resolved, width, height):
    return resolved['size_max'] + 1


def _pos_x_high(resolved, width, height):
    return width - resolved['size_max'] - 1


def _pos_y_high(resolved, width, height):
    return height - resolved['size_max'] - 1


_UNBOUNDED = _const(MAX_SAFE_INTEGER)

# Resolution order matters: position ranges depend on size_max.
SETTING_RULES: List[SettingRule] = [
    SettingRule('amount', lambda r, w, h: w * h / AREA_PER_PARTICLE, _const(0), _UNBOUNDED),
    SettingRule('tolerance', _const(150), _const(0), _UNBOUNDED),
    SettingRule('line_width', _const(3), _const(0), _UNBOUNDED),

    SettingRule('size_min', _const(2), _const(0), _UNBOUNDED),
    # size_max never falls below size_min so the position margins cover every size.
    SettingRule('size_max', _const(6), lambda r, w, h: r['size_min'], _UNBOUNDED),

    SettingRule('position_x_min', _pos_low, _pos_low, _pos_x_high),
    SettingRule('position_x_max', lambda r, w, h: w - r['size_max'], _pos_low, _pos_x_high),
    SettingRule('position_y_min', _pos_low, _pos_low, _pos_y_high),
    SettingRule('position_y_max', lambda r, w, h: h - r['size_max'], _pos_low, _pos_y_high),
    SettingRule('speed_min', _const(200), _const(0), _UNBOUNDED),
    SettingRule('speed_max', _const(400), _const(0), _UNBOUNDED),
    SettingRule('direction_min', _const(0), _const(0), _const(FULL_TURN)),
    SettingRule('direction_max', _const(FULL_TURN), _const(0), _const(FULL_TURN)),
    SettingRule('color_min', _const(0), _const(0), _const(360)),
    SettingRule('color_max', _const(360), _const(0), _const(360)),

    SettingRule('multiplier_in', _const(1.5), _const(0.001), _UNBOUNDED),
    SettingRule('multiplier_out', _const(1), _const(0.001), _UNBOUNDED),
]

SETTING_KEYS: Tuple[str, ...] = tuple(rule.key for rule in SETTING_RULES)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a meaningful setting.
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_bounds(width: Any, height: Any) -> Tuple[int, int]:
    """Checks that the surface bounds describe a drawable area."""
    problems = []
    if not _is_number(width) or not width > 0:
        problems.append(f"The surface has a width of {width!r}.")
    if not _is_number(height) or not height > 0:
        problems.append(f"The surface has a height of {height!r}.")
    if problems:
        raise BoundaryError(" ".join(problems))
    return width, height


def _clamp(value: float, low: float, high: float) -> Tuple[float, str]:
    # A degenerate range (surface too small for size_max) collapses to low.
    high = max(high, low)
    if value < low:
        return low, "too low"
    if value > high:
        return high, "too high"
    return value, "ok"


def resolve_settings(partial: Optional[Dict[str, Any]], width: int, height: int) -> Dict[str, float]:
    """
    Resolves a partial settings mapping against its defaults and bounds.

    Args:
        partial (Optional[Dict[str, Any]]): User-provided settings, any subset.
        width (int): Width of the drawable surface in pixels.
        height (int): Height of the drawable surface in pixels.

    Returns:
        Dict[str, float]: A complete settings mapping, one entry per rule.

    Raises:
        BoundaryError: If width or height is not a positive number.
    """
    width, height = validate_bounds(width, height)
    partial = partial or {}

    unknown = sorted(set(partial) - set(SETTING_KEYS))
    if unknown:
        logging.warning(f"Ignoring unknown settings: {', '.join(unknown)}.")

    resolved: Dict[str, float] = {}
    for rule in SETTING_RULES:
        low = rule.minimum(resolved, width, height)
        high = rule.maximum(resolved, width, height)
        raw = partial.get(rule.key)

        if rule.key not in partial or raw is None:
            value, status = rule.default(resolved, width, height), "unset"
        elif not _is_number(raw) or math.isnan(raw):
            logging.warning(
                f"Setting '{rule.key}' has an invalid value {raw!r}. Using its default."
            )
            value, status = rule.default(resolved, width, height), "default"
        elif raw == UNSET_SENTINEL:
            value, status = rule.default(resolved, width, height), "default"
        else:
            value, status = raw, None

        # Defaults are clamped too: position_x_max defaults one pixel past its maximum.
        value, clamp_status = _clamp(value, low, high)
        resolved[rule.key] = float(value)
        status = status or clamp_status

        logging.debug(f"Loaded setting '{rule.key}' = {resolved[rule.key]:g}, status : {status}.")

    return resolved
