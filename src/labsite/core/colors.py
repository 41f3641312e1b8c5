"""
Color derivation and gradient composition.

Topic colors vary only in hue; saturation and lightness are fixed so the
same hue always yields the same hex string. Gradients are CSS
``linear-gradient(...)`` strings with stops ordered by hue.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

LAB_COLOR = "#00AAFF"
LAB_COLOR_DARK = "#005580"
TOPIC_SATURATION = 70
TOPIC_LIGHTNESS = 80
DEFAULT_DIRECTION = "to right"
SINGLE_COLOR_DARKEN = 30

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

BRAND_GRADIENT = f"linear-gradient({DEFAULT_DIRECTION}, {LAB_COLOR} 0%, {LAB_COLOR_DARK} 100%)"


def is_hex_color(value: Any) -> bool:
    """Check whether *value* is a ``#RGB`` or ``#RRGGBB`` string."""
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value))


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Parse a hex color into 0-255 channels.

    Anything that is not a 4 or 7 character hex string decodes as black.
    """
    if not is_hex_color(color):
        return (0, 0, 0)
    digits = color[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def hex_to_hsl(color: str) -> tuple[int, int, int]:
    """Convert a hex color to rounded HSL components.

    Args:
        color: Hex color string like "#f0a8a8"

    Returns:
        (hue 0-360, saturation 0-100, lightness 0-100), each rounded to an int
    """
    r, g, b = (channel / 255 for channel in hex_to_rgb(color))
    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2
    hue = 0.0
    saturation = 0.0

    if high != low:
        delta = high - low
        if lightness > 0.5:
            saturation = delta / (2 - high - low)
        else:
            saturation = delta / (high + low)

        if high == r:
            hue = (g - b) / delta + (6 if g < b else 0)
        elif high == g:
            hue = (b - r) / delta + 2
        else:
            hue = (r - g) / delta + 4
        hue /= 6

    return (_round_half_up(hue * 360), _round_half_up(saturation * 100), _round_half_up(lightness * 100))


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """Convert HSL to a lowercase ``#rrggbb`` string.

    Args:
        hue: Hue in degrees (0-360)
        saturation: Saturation as percentage (0-100)
        lightness: Lightness as percentage (0-100)
    """
    h = (hue % 360) / 360
    s = saturation / 100
    lum = lightness / 100

    if s == 0:
        r = g = b = lum
    else:
        q = lum * (1 + s) if lum < 0.5 else lum + s - lum * s
        p = 2 * lum - q
        r = _hue_to_channel(p, q, h + 1 / 3)
        g = _hue_to_channel(p, q, h)
        b = _hue_to_channel(p, q, h - 1 / 3)

    return "#" + "".join(f"{_round_half_up(c * 255):02x}" for c in (r, g, b))


def topic_color(hue: float) -> str:
    """Derive the display color for a topic hue."""
    return hsl_to_hex(hue, TOPIC_SATURATION, TOPIC_LIGHTNESS)


def hue_of(color: str) -> int:
    """Extract the rounded hue of a hex color."""
    return hex_to_hsl(color)[0]


def darken(color: str, percent: float) -> str:
    """Reduce lightness by *percent* of itself, keeping hue and saturation."""
    hue, saturation, lightness = hex_to_hsl(color)
    return hsl_to_hex(hue, saturation, max(0.0, lightness - (percent / 100) * lightness))


def even_hue(index: int, count: int) -> int:
    """Hue for position *index* of *count* evenly spaced slots."""
    if count <= 0:
        return 0
    return _round_half_up(index / count * 360)


def _format_stop(percent: float) -> str:
    return f"{round(percent, 2):g}%"


def compose_gradient(colors: Sequence[str], direction: str = DEFAULT_DIRECTION) -> str:
    """Compose a CSS linear gradient from a set of colors.

    Colors are sorted by hue (stable, so equal hues keep their input order)
    and spread evenly from 0% to 100%. Callers filter malformed colors first.

    Args:
        colors: Hex colors to include
        direction: CSS gradient direction

    Returns:
        Gradient string. Empty input yields the brand gradient, a single color
        fades into a darker variant of itself.
    """
    colors = list(colors)
    if not colors:
        return f"linear-gradient({direction}, {LAB_COLOR} 0%, {LAB_COLOR_DARK} 100%)"

    if len(colors) == 1:
        only = colors[0]
        return f"linear-gradient({direction}, {only} 0%, {darken(only, SINGLE_COLOR_DARKEN)} 100%)"

    ordered = sorted(colors, key=hue_of)
    last = len(ordered) - 1
    stops = [f"{color} {_format_stop(i / last * 100)}" for i, color in enumerate(ordered)]
    return f"linear-gradient({direction}, {', '.join(stops)})"


def project_colors(project: Mapping[str, Any]) -> list[str]:
    """Get the topic colors of a project record.

    Uses the ``topics_with_colors`` snapshot when present, otherwise spreads
    hues evenly over the project's topic list.
    """
    snapshot: Iterable[Mapping[str, Any]] = project.get("topics_with_colors") or []
    colors = [entry["color"] for entry in snapshot if is_hex_color(entry.get("color"))]
    if colors:
        return colors

    topics = list(project.get("topics") or [])
    return [topic_color(even_hue(i, len(topics))) for i in range(len(topics))]
