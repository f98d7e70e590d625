"""
Color and Style Primitive Converters

Single-value conversions between the V1 theme-aware color objects and the
V2 plain-string styling: colors, gradients, shadows and outlines. Also the
small helpers for building and inspecting V1 color configs.

Only one operation here raises: a V1 gradient with fewer than two colors.
Everything else recovers locally with DEFAULT_COLOR or passes None through.
"""

from typing import Any, Dict, Mapping, Optional, Union

from .errors import GradientValidationError
from .models import DEFAULT_COLOR, Version, validate_color_config

__all__ = [
    "DEFAULT_COLOR",
    "color_to_v2",
    "color_to_v1",
    "gradient_to_v2",
    "gradient_to_v1",
    "shadow_to_v2",
    "shadow_to_v1",
    "outline_to_v2",
    "outline_to_v1",
    "gradient_version",
    "convert_gradient",
    "string_to_color_config",
    "color_config_to_string",
    "create_theme_color_config",
    "is_theme_color",
    "merge_color_config",
    "validate_color_config",
]

ColorValue = Union[Mapping[str, Any], str, None]


# ============================================================
# COLOR
# ============================================================

def color_to_v2(config: ColorValue) -> str:
    """Resolve a V1 ColorConfig to a V2 color string.

    Prefers a non-empty ``color``; then the structured ``themeColor.color``;
    then a legacy bare-string ``themeColor``; otherwise DEFAULT_COLOR.
    Plain strings are taken as already-resolved colors.
    """
    if not config:
        return DEFAULT_COLOR
    if isinstance(config, str):
        return config
    if not isinstance(config, Mapping):
        return DEFAULT_COLOR

    color = config.get("color")
    if isinstance(color, str) and color:
        return color

    theme = config.get("themeColor")
    if isinstance(theme, Mapping):
        theme = theme.get("color")
    if isinstance(theme, str) and theme:
        return theme

    return DEFAULT_COLOR


def color_to_v1(color: ColorValue) -> Dict[str, Any]:
    """Wrap a V2 color string as a V1 ColorConfig. Theme metadata is not recovered."""
    if isinstance(color, Mapping):
        return dict(color)
    return {"color": color or DEFAULT_COLOR}


# ============================================================
# GRADIENT
# ============================================================

def gradient_to_v2(gradient: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a V1 two-color gradient to V2 stops at 0 and 100.

    Raises:
        GradientValidationError: if ``themeColor`` is not a list of at least two entries.
    """
    theme_colors = gradient.get("themeColor")
    if not isinstance(theme_colors, (list, tuple)) or len(theme_colors) < 2:
        raise GradientValidationError("V1 gradient requires at least 2 colors")

    return {
        "type": gradient.get("type", "linear"),
        "colors": [
            {"pos": i * 100, "color": color_to_v2(entry)}
            for i, entry in enumerate(theme_colors)
        ],
        "rotate": gradient.get("rotate", 0),
    }


def gradient_to_v1(gradient: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a V2 gradient to the V1 pair, keeping only the first two stops.

    A single stop is duplicated; an empty stop list falls back to black-to-white.
    """
    stops = list(gradient.get("colors") or [])[:2]
    if len(stops) == 1:
        stops.append(stops[0])

    first = stops[0].get("color") if stops else None
    second = stops[1].get("color") if stops else None

    return {
        "type": gradient.get("type", "linear"),
        "themeColor": [
            color_to_v1(first or DEFAULT_COLOR),
            color_to_v1(second or "#FFFFFF"),
        ],
        "rotate": gradient.get("rotate", 0),
    }


def gradient_version(gradient: Any) -> Optional[Version]:
    """Sniff the generation of a gradient object; None when unrecognised."""
    if not isinstance(gradient, Mapping):
        return None
    if isinstance(gradient.get("themeColor"), (list, tuple)):
        return Version.v1
    if isinstance(gradient.get("colors"), (list, tuple)):
        return Version.v2
    return None


def convert_gradient(gradient: Mapping[str, Any], target: Union[Version, str]) -> Mapping[str, Any]:
    """Convert a gradient of either generation to ``target``; identity when already there."""
    current = gradient_version(gradient)
    if current == Version.v1 and target == Version.v2:
        return gradient_to_v2(gradient)
    if current == Version.v2 and target == Version.v1:
        return gradient_to_v1(gradient)
    return gradient


# ============================================================
# SHADOW / OUTLINE
# ============================================================

def shadow_to_v2(shadow: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Rename ``themeColor`` to a resolved ``color`` string; absent stays absent."""
    if shadow is None:
        return None
    result = {k: v for k, v in shadow.items() if k not in ("themeColor", "color")}
    result["color"] = color_to_v2(shadow.get("themeColor", shadow.get("color")))
    return result


def shadow_to_v1(shadow: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if shadow is None:
        return None
    result = {k: v for k, v in shadow.items() if k not in ("themeColor", "color")}
    result["themeColor"] = color_to_v1(shadow.get("color"))
    return result


def outline_to_v2(outline: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Same as shadow_to_v2; style and width are copied only when present."""
    if outline is None:
        return None
    result = {k: v for k, v in outline.items() if k not in ("themeColor", "color")}
    result["color"] = color_to_v2(outline.get("themeColor", outline.get("color")))
    return result


def outline_to_v1(outline: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if outline is None:
        return None
    result = {k: v for k, v in outline.items() if k not in ("themeColor", "color")}
    if outline.get("color"):
        result["themeColor"] = color_to_v1(outline["color"])
    return result


# ============================================================
# COLOR CONFIG HELPERS
# ============================================================

def string_to_color_config(color: str) -> Dict[str, Any]:
    return {"color": color}


def color_config_to_string(config: Mapping[str, Any]) -> str:
    return config["color"]


def create_theme_color_config(
    color: str,
    color_type: Optional[str],
    color_index: Optional[float] = None,
    opacity: Optional[float] = None,
) -> Dict[str, Any]:
    """Build a full theme-aware ColorConfig.

    Args:
        color: Resolved color value (hex/rgb/rgba)
        color_type: Theme slot such as 'accent1' or 'dk1'
        color_index: Optional palette variant index
        opacity: Optional opacity in [0, 1]

    Returns:
        ColorConfig dict with ``colorType`` and a structured ``themeColor``

    Raises:
        ValueError: if a theme slot is given without a usable color string
    """
    config: Dict[str, Any] = {"color": color, "colorType": color_type}

    if color_index is not None:
        config["colorIndex"] = color_index

    if opacity is not None:
        config["opacity"] = opacity

    if color_type:
        if not color or not isinstance(color, str):
            raise ValueError("Invalid color value for theme color configuration")
        config["themeColor"] = {"color": color, "type": color_type}

    return config


def is_theme_color(config: Mapping[str, Any]) -> bool:
    return config.get("colorType") is not None or config.get("themeColor") is not None


def merge_color_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow merge; keys in ``override`` win."""
    return {**base, **override}
