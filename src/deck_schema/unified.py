"""
Unified Element Wrapper

A facade over an element of unknown schema generation. The version is
detected once at construction and materialised on demand with as_v1() /
as_v2().

Mutators (position, rotation, lock, group) write through to the wrapped
dict in place; nothing is copied. Call clone() first when the caller's
original must stay untouched.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from .detect import classify
from .elements import element_to_v1, element_to_v2
from .models import Version

Element = Dict[str, Any]

POSITION_FIELDS = ("left", "top", "width", "height")


@dataclass
class VersionStats:
    """Per-version counts for a set of elements."""
    v1: int = 0
    v2: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"v1": self.v1, "v2": self.v2, "total": self.total}


class UnifiedElement:
    """One element plus its detected version."""

    def __init__(self, data: Element):
        self._data = data
        self._version = classify(data)

    def __repr__(self) -> str:
        return f"UnifiedElement(id={self.id!r}, type={self.type!r}, version={self._version.value})"

    # ------------------------------------------------------------
    # Version views
    # ------------------------------------------------------------

    def as_v1(self) -> Element:
        """V1 view; the wrapped dict itself when it is already V1."""
        if self._version == Version.v1:
            return self._data
        return element_to_v1(self._data)

    def as_v2(self) -> Optional[Element]:
        """V2 view, or None when the element has no V2 form."""
        if self._version == Version.v2:
            return self._data
        return element_to_v2(self._data)

    def raw(self) -> Element:
        return self._data

    @property
    def version(self) -> Version:
        return self._version

    # ------------------------------------------------------------
    # Common accessors
    # ------------------------------------------------------------

    @property
    def id(self) -> Optional[str]:
        return self._data.get("id")

    @property
    def type(self) -> Optional[str]:
        return self._data.get("type")

    def get_position(self) -> Dict[str, float]:
        return {
            "left": self._data.get("left", 0),
            "top": self._data.get("top", 0),
            "width": self._data.get("width", 0),
            "height": self._data.get("height") or 0,
        }

    def set_position(self, **position: float) -> None:
        """Shallow-merge any of left/top/width/height into the wrapped element."""
        unknown = set(position) - set(POSITION_FIELDS)
        if unknown:
            raise TypeError(f"Unknown position fields: {', '.join(sorted(unknown))}")
        self._data.update(position)

    @property
    def rotation(self) -> float:
        return self._data.get("rotate") or 0

    @rotation.setter
    def rotation(self, value: float) -> None:
        self._data["rotate"] = value

    @property
    def locked(self) -> bool:
        return bool(self._data.get("lock", False))

    @locked.setter
    def locked(self, value: bool) -> None:
        self._data["lock"] = value

    @property
    def group_id(self) -> Optional[str]:
        return self._data.get("groupId")

    @group_id.setter
    def group_id(self, value: Optional[str]) -> None:
        self._data["groupId"] = value

    # ------------------------------------------------------------
    # Copy / serialization
    # ------------------------------------------------------------

    def clone(self) -> "UnifiedElement":
        """Deep copy; the clone shares no state with this wrapper."""
        return UnifiedElement(copy.deepcopy(self._data))

    def to_dict(self) -> Element:
        return self._data

    @classmethod
    def from_dict(cls, data: Element) -> "UnifiedElement":
        return cls(data)


class UnifiedElementCollection:
    """Ordered list of wrapped elements; order is z-order."""

    def __init__(self, elements: Iterable[Element] = ()):
        self._elements: List[UnifiedElement] = [UnifiedElement(el) for el in elements]

    def __iter__(self) -> Iterator[UnifiedElement]:
        return iter(list(self._elements))

    def __len__(self) -> int:
        return len(self._elements)

    def add(self, element: Union[Element, UnifiedElement]) -> None:
        if not isinstance(element, UnifiedElement):
            element = UnifiedElement(element)
        self._elements.append(element)

    def remove(self, element_id: str) -> bool:
        """Remove the first element with this id; False when absent."""
        for i, element in enumerate(self._elements):
            if element.id == element_id:
                del self._elements[i]
                return True
        return False

    def find_by_id(self, element_id: str) -> Optional[UnifiedElement]:
        return next((el for el in self._elements if el.id == element_id), None)

    def filter_by_type(self, element_type: str) -> List[UnifiedElement]:
        return [el for el in self._elements if el.type == element_type]

    def get_all(self) -> List[UnifiedElement]:
        return list(self._elements)

    def count(self) -> int:
        return len(self._elements)

    def clear(self) -> None:
        self._elements = []

    def as_v1_list(self) -> List[Element]:
        return [el.as_v1() for el in self._elements]

    def as_v2_list(self) -> List[Element]:
        """V2 views, skipping elements with no V2 form."""
        views = (el.as_v2() for el in self._elements)
        return [view for view in views if view is not None]

    def version_stats(self) -> VersionStats:
        stats = VersionStats(total=len(self._elements))
        for el in self._elements:
            if el.version == Version.v1:
                stats.v1 += 1
            else:
                stats.v2 += 1
        return stats

    def batch_update(self, updater: Callable[[UnifiedElement], Any]) -> None:
        for el in self._elements:
            updater(el)

    def clone(self) -> "UnifiedElementCollection":
        collection = UnifiedElementCollection()
        collection._elements = [el.clone() for el in self._elements]
        return collection

    def to_list(self) -> List[Element]:
        return [el.to_dict() for el in self._elements]

    @classmethod
    def from_list(cls, data: Iterable[Element]) -> "UnifiedElementCollection":
        return cls(data)


# ============================================================
# BATCH HELPERS
# ============================================================

@dataclass
class NormalizeResult:
    """Outcome of normalize_to_version."""
    converted: List[Element]
    original_v1: int
    original_v2: int
    skipped: int

    @property
    def converted_count(self) -> int:
        return len(self.converted)


def batch_convert(elements: Iterable[Element], target: Union[Version, str]) -> List[Element]:
    """Bring every element to ``target``; V2 output drops elements with no V2 form."""
    collection = UnifiedElementCollection(elements)
    if target == Version.v1:
        return collection.as_v1_list()
    return collection.as_v2_list()


def normalize_to_version(elements: List[Element], target: Union[Version, str]) -> NormalizeResult:
    """batch_convert plus the version mix it started from."""
    collection = UnifiedElementCollection(elements)
    stats = collection.version_stats()

    if target == Version.v1:
        converted = collection.as_v1_list()
    else:
        converted = collection.as_v2_list()

    return NormalizeResult(
        converted=converted,
        original_v1=stats.v1,
        original_v2=stats.v2,
        skipped=len(elements) - len(converted),
    )
