"""
Version Detection

Elements arrive untagged, so their schema generation is guessed from
structure. Each heuristic is a named predicate in V1_SIGNALS; an element is
V1 as soon as one of them matches, and V2 otherwise. Non-dict input is never
V1, so ``{}``, ``None`` and scalars all classify as V2.
"""

from typing import Any, Callable, Iterable, List, Mapping, NamedTuple, Sequence

from .models import Version

__all__ = [
    "V1_PROVENANCE_FIELDS",
    "V1_COLOR_FIELDS",
    "V1Signal",
    "V1_SIGNALS",
    "v1_signals",
    "classify",
    "is_v1_element",
    "is_v2_element",
    "detect_elements_version",
    "has_tag",
    "has_index",
    "has_from",
    "has_is_default",
    "has_extensions",
]

V1_PROVENANCE_FIELDS = ("tag", "index", "from", "isDefault")

# Fields that hold a ColorConfig object in V1 and a plain string in V2
V1_COLOR_FIELDS = ("defaultColor", "themeFill", "themeColor")


class V1Signal(NamedTuple):
    """A named structural hint that an element uses the V1 schema."""
    name: str
    predicate: Callable[[Mapping[str, Any]], bool]


def _has_provenance_fields(element: Mapping[str, Any]) -> bool:
    return any(key in element for key in V1_PROVENANCE_FIELDS)


def _has_color_config(element: Mapping[str, Any]) -> bool:
    for key in V1_COLOR_FIELDS:
        value = element.get(key)
        if isinstance(value, Mapping) and "color" in value and "themeColor" in value:
            return True
    return False


def _has_gradient_pair(element: Mapping[str, Any]) -> bool:
    gradient = element.get("gradient")
    return isinstance(gradient, Mapping) and isinstance(gradient.get("themeColor"), (list, tuple))


V1_SIGNALS: Sequence[V1Signal] = (
    V1Signal("provenance_fields", _has_provenance_fields),
    V1Signal("color_config", _has_color_config),
    V1Signal("gradient_pair", _has_gradient_pair),
)


# ============================================================
# CLASSIFICATION
# ============================================================

def v1_signals(element: Any, signals: Sequence[V1Signal] = V1_SIGNALS) -> List[str]:
    """Names of every V1 heuristic that matches, in rule order."""
    if not isinstance(element, Mapping):
        return []
    return [signal.name for signal in signals if signal.predicate(element)]


def classify(element: Any, signals: Sequence[V1Signal] = V1_SIGNALS) -> Version:
    """Guess the schema generation of a single element."""
    if not isinstance(element, Mapping):
        return Version.v2
    for signal in signals:
        if signal.predicate(element):
            return Version.v1
    return Version.v2


def is_v1_element(element: Any) -> bool:
    return classify(element) == Version.v1


def is_v2_element(element: Any) -> bool:
    """V2 is the fallback: anything not recognisably V1."""
    return not is_v1_element(element)


def detect_elements_version(elements: Iterable[Any]) -> str:
    """Return 'v1', 'v2' or 'mixed' for a batch; an empty batch is 'v2'."""
    v1_count = 0
    v2_count = 0
    for element in elements:
        if is_v1_element(element):
            v1_count += 1
        else:
            v2_count += 1

    if v1_count == 0:
        return Version.v2.value
    if v2_count == 0:
        return Version.v1.value
    return "mixed"


# ============================================================
# EXTENSION FIELD GUARDS
# ============================================================

def _has_typed(element: Any, key: str, kind) -> bool:
    return isinstance(element, Mapping) and key in element and isinstance(element[key], kind)


def has_tag(element: Any) -> bool:
    return _has_typed(element, "tag", str)


def has_index(element: Any) -> bool:
    return _has_typed(element, "index", (int, float)) and not isinstance(element["index"], bool)


def has_from(element: Any) -> bool:
    return _has_typed(element, "from", str)


def has_is_default(element: Any) -> bool:
    return _has_typed(element, "isDefault", bool)


def has_extensions(element: Any, keys: Iterable[str]) -> bool:
    """True when every key is present, whatever its value."""
    if not isinstance(element, Mapping):
        return False
    return all(key in element for key in keys)
