"""
Element Converters

Per-kind conversion of element dicts between the V1 and V2 schemas, the
generic type-dispatching adapters built on top of them, the auto adapters
that detect before converting, and slide/background conversion.

Every converter returns a new dict and leaves its input untouched. Each one
does three things: drops fields foreign to the target version, converts the
color-bearing fields, and fills in target-only fields with fixed defaults.

Unsupported kinds are handled asymmetrically: V1 -> V2 returns None
(the V1 'none' placeholder has no V2 form) while V2 -> V1 raises
UnsupportedElementError.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .colors import (
    color_to_v1,
    color_to_v2,
    gradient_to_v1,
    gradient_to_v2,
    gradient_version,
    outline_to_v1,
    outline_to_v2,
    shadow_to_v1,
    shadow_to_v2,
)
from .detect import V1_PROVENANCE_FIELDS, is_v1_element, is_v2_element
from .errors import UnsupportedElementError
from .models import Version

Element = Dict[str, Any]

SUPPORTED_TYPES = ("text", "shape", "image", "line")


def _strip(element: Mapping[str, Any], extra: Iterable[str] = ()) -> Element:
    dropped = set(V1_PROVENANCE_FIELDS) | set(extra)
    return {k: v for k, v in element.items() if k not in dropped}


def _convert_styles(element: Element, shadow_fn: Callable, outline_fn: Callable) -> None:
    if element.get("shadow") is not None:
        element["shadow"] = shadow_fn(element["shadow"])
    if element.get("outline") is not None:
        element["outline"] = outline_fn(element["outline"])


# ============================================================
# V1 -> V2
# ============================================================

def text_to_v2(element: Mapping[str, Any]) -> Element:
    result = _strip(element, ("enableShrink", "themeFill"))
    result["defaultColor"] = color_to_v2(element.get("defaultColor"))
    if element.get("themeFill") is not None:
        result["fill"] = color_to_v2(element["themeFill"])
    _convert_styles(result, shadow_to_v2, outline_to_v2)
    result.setdefault("textType", "content")
    return result


def shape_to_v2(element: Mapping[str, Any]) -> Element:
    """Path is passed through as-is, even when V1 stored it as a structure."""
    result = _strip(element, ("keypoint", "themeFill"))
    result["fill"] = color_to_v2(element.get("themeFill", element.get("fill")))

    gradient = element.get("gradient")
    if gradient is None:
        result.pop("gradient", None)
    elif gradient_version(gradient) != Version.v2:
        result["gradient"] = gradient_to_v2(gradient)

    text = element.get("text")
    if isinstance(text, Mapping) and isinstance(text.get("defaultColor"), Mapping):
        result["text"] = {**text, "defaultColor": color_to_v2(text["defaultColor"])}

    _convert_styles(result, shadow_to_v2, outline_to_v2)
    return result


def image_to_v2(element: Mapping[str, Any]) -> Element:
    result = _strip(element, ("size", "loading"))
    result.setdefault("fixedRatio", False)
    _convert_styles(result, shadow_to_v2, outline_to_v2)
    return result


def line_to_v2(element: Mapping[str, Any]) -> Element:
    """V1 keeps stroke width in ``lineWidth``; V2 reuses ``width`` for it."""
    result = _strip(element, ("themeColor", "lineWidth"))
    result["color"] = color_to_v2(element.get("themeColor", element.get("color")))
    result["width"] = element.get("lineWidth") or 1
    result.setdefault("style", "solid")
    result.setdefault("points", ["", ""])
    if result.get("shadow") is not None:
        result["shadow"] = shadow_to_v2(result["shadow"])
    return result


_TO_V2: Dict[str, Callable[[Mapping[str, Any]], Element]] = {
    "text": text_to_v2,
    "shape": shape_to_v2,
    "image": image_to_v2,
    "line": line_to_v2,
}


def element_to_v2(element: Mapping[str, Any]) -> Optional[Element]:
    """Dispatch on ``type``. Returns None for 'none' and any unknown kind."""
    if not isinstance(element, Mapping):
        return None
    converter = _TO_V2.get(element.get("type"))
    if converter is None:
        return None
    return converter(element)


def elements_to_v2(elements: Iterable[Mapping[str, Any]]) -> List[Element]:
    """Convert a batch, dropping elements that have no V2 form."""
    converted = (element_to_v2(element) for element in elements)
    return [element for element in converted if element is not None]


# ============================================================
# V2 -> V1
# ============================================================

def _with_v1_slots(result: Element) -> Element:
    # Present-but-empty provenance keys keep the output recognisable as V1
    for key in V1_PROVENANCE_FIELDS:
        result[key] = None
    return result


def text_to_v1(element: Mapping[str, Any]) -> Element:
    result = {k: v for k, v in element.items() if k != "fill"}
    result["defaultColor"] = color_to_v1(element.get("defaultColor"))
    if element.get("fill"):
        result["themeFill"] = color_to_v1(element["fill"])
    _convert_styles(result, shadow_to_v1, outline_to_v1)
    _with_v1_slots(result)
    result["enableShrink"] = False
    return result


def shape_to_v1(element: Mapping[str, Any]) -> Element:
    result = {k: v for k, v in element.items() if k != "fill"}
    result["themeFill"] = color_to_v1(element.get("fill"))

    gradient = element.get("gradient")
    if gradient is None:
        result.pop("gradient", None)
    elif gradient_version(gradient) != Version.v1:
        result["gradient"] = gradient_to_v1(gradient)

    _convert_styles(result, shadow_to_v1, outline_to_v1)
    _with_v1_slots(result)
    result["keypoint"] = None
    return result


def image_to_v1(element: Mapping[str, Any]) -> Element:
    result = dict(element)
    _convert_styles(result, shadow_to_v1, outline_to_v1)
    _with_v1_slots(result)
    result["size"] = None
    result["loading"] = False
    return result


def line_to_v1(element: Mapping[str, Any]) -> Element:
    result = {k: v for k, v in element.items() if k != "color"}
    result["height"] = element.get("height") or 2
    result["rotate"] = element.get("rotate") or 0
    result["start"] = element.get("start") or [0, 0]
    result["end"] = element.get("end") or [100, 100]
    result["themeColor"] = color_to_v1(element.get("color"))
    result["lineWidth"] = element.get("width")
    if result.get("shadow") is not None:
        result["shadow"] = shadow_to_v1(result["shadow"])
    return _with_v1_slots(result)


_TO_V1: Dict[str, Callable[[Mapping[str, Any]], Element]] = {
    "text": text_to_v1,
    "shape": shape_to_v1,
    "image": image_to_v1,
    "line": line_to_v1,
}


def element_to_v1(element: Mapping[str, Any]) -> Element:
    """Dispatch on ``type``.

    Raises:
        UnsupportedElementError: for any kind other than text/shape/image/line
    """
    element_type = element.get("type") if isinstance(element, Mapping) else None
    converter = _TO_V1.get(element_type)
    if converter is None:
        raise UnsupportedElementError(element_type)
    return converter(element)


def elements_to_v1(elements: Iterable[Mapping[str, Any]]) -> List[Element]:
    """Convert a batch. The first unsupported element aborts the whole batch."""
    return [element_to_v1(element) for element in elements]


# ============================================================
# AUTO ADAPTERS
# ============================================================

def auto_to_v2(element: Any) -> Optional[Any]:
    """Convert only if the element looks V1; V2 input is returned as the same object."""
    if element is None or (not element and not isinstance(element, Mapping)):
        return None
    if is_v1_element(element):
        return element_to_v2(element)
    return element


def auto_to_v1(element: Any) -> Any:
    """Convert only if the element looks V2; raises for kinds V1 cannot hold."""
    if is_v2_element(element):
        return element_to_v1(element)
    return element


def auto_elements_to_v2(elements: Iterable[Any]) -> List[Any]:
    converted = (auto_to_v2(element) for element in elements)
    return [element for element in converted if element is not None]


def auto_elements_to_v1(elements: Iterable[Any]) -> List[Any]:
    return [auto_to_v1(element) for element in elements]


# ============================================================
# SLIDE BACKGROUND / SLIDE
# ============================================================

def background_to_v2(background: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a V1 project background; V2-shaped input is copied unchanged."""
    if background is None:
        return None

    kind = background.get("type")
    if kind == "solid" and "themeColor" in background:
        return {"type": "solid", "color": color_to_v2(background["themeColor"])}

    if kind == "image" and isinstance(background.get("image"), str):
        return {
            "type": "image",
            "image": {"src": background["image"], "size": background.get("imageSize") or "cover"},
        }

    if kind == "gradient" and "gradientColor" in background:
        return {
            "type": "gradient",
            "gradient": gradient_to_v2({
                "type": background.get("gradientType", "linear"),
                "themeColor": background["gradientColor"],
                "rotate": background.get("gradientRotate", 0),
            }),
        }

    return dict(background)


def background_to_v1(background: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a V2 background to the V1 project shape; V1-shaped input is copied unchanged."""
    if background is None:
        return None

    kind = background.get("type")
    if kind == "solid" and "color" in background:
        return {"type": "solid", "themeColor": color_to_v1(background["color"])}

    image = background.get("image")
    if kind == "image" and isinstance(image, Mapping):
        return {"type": "image", "image": image.get("src", ""), "imageSize": image.get("size", "cover")}

    if kind == "gradient" and isinstance(background.get("gradient"), Mapping):
        pair = gradient_to_v1(background["gradient"])
        return {
            "type": "gradient",
            "gradientType": pair["type"],
            "gradientColor": pair["themeColor"],
            "gradientRotate": pair["rotate"],
        }

    return dict(background)


def slide_to_v2(slide: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a slide's elements (detected one by one) and background; other fields are kept."""
    result = dict(slide)
    result["elements"] = auto_elements_to_v2(slide.get("elements") or [])
    if "background" in slide:
        result["background"] = background_to_v2(slide["background"])
    return result


def slide_to_v1(slide: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(slide)
    result["elements"] = auto_elements_to_v1(slide.get("elements") or [])
    if "background" in slide:
        result["background"] = background_to_v1(slide["background"])
    return result
