"""
Smart Version Converter

A registry of named, prioritised conversion strategies layered over the
element converters. For each element the converter detects its version,
picks the highest-priority strategy whose direction and predicate match, and
routes failures through a single configurable error policy.

Strategy selection is a sorted rule list: among matching strategies the
highest priority wins and ties go to the one registered first. Registering a
strategy under an existing name replaces it in place.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .detect import classify
from .diagnose import check_compatibility
from .elements import (
    auto_to_v1,
    auto_to_v2,
    element_to_v1,
    image_to_v2,
    line_to_v2,
    shape_to_v2,
    text_to_v2,
)
from .errors import ValidationFailedError
from .memoize import memoize
from .models import Version

logger = logging.getLogger(__name__)

Element = Dict[str, Any]

# Point weights used by infer_best_strategy. Only their relative order matters.
SCORE_WEIGHTS: Dict[str, int] = {
    "v2_majority": 40,
    "v1_majority": 30,
    "v2_features": 30,
    "compatibility": 20,
    "forward_bias": 10,
}

MAJORITY_RATIO = 0.7

V2_FEATURE_FIELDS = ("textType", "imageType", "pattern")


# ============================================================
# OPTIONS / STRATEGIES
# ============================================================

class ConversionOptions(BaseModel):
    """Runtime knobs for a SmartVersionConverter."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    error_handling: Literal["throw", "skip", "default"] = "skip"
    preserve_unsupported: bool = False
    validate_output: bool = True
    cache: bool = False
    on_convert: Optional[Callable[[Any, Any], None]] = Field(None, exclude=True)
    on_error: Optional[Callable[[Exception, Any], None]] = Field(None, exclude=True)


@dataclass
class ConversionStrategy:
    """A named conversion from one version to the other."""
    name: str
    from_version: Version
    to_version: Version
    convert: Callable[[Any], Any]
    validate: Optional[Callable[[Any], bool]] = None
    priority: int = 0
    description: str = ""

    def __post_init__(self) -> None:
        self.from_version = Version(self.from_version)
        self.to_version = Version(self.to_version)

    def accepts(self, element: Any) -> bool:
        return self.validate is None or bool(self.validate(element))


def _of_type(element_type: str) -> Callable[[Any], bool]:
    def predicate(element: Any) -> bool:
        return isinstance(element, Mapping) and element.get("type") == element_type
    return predicate


def _is_v2(element: Any) -> bool:
    return classify(element) == Version.v2


def default_strategies(cache: bool = False) -> List[ConversionStrategy]:
    """The built-in strategy table; ``cache`` memoizes each converter."""
    wrap = memoize if cache else (lambda fn: fn)
    return [
        ConversionStrategy(
            name="v1-to-v2-text",
            description="V1 text element to V2",
            from_version=Version.v1,
            to_version=Version.v2,
            priority=100,
            validate=_of_type("text"),
            convert=wrap(text_to_v2),
        ),
        ConversionStrategy(
            name="v1-to-v2-shape",
            description="V1 shape element to V2",
            from_version=Version.v1,
            to_version=Version.v2,
            priority=100,
            validate=_of_type("shape"),
            convert=wrap(shape_to_v2),
        ),
        ConversionStrategy(
            name="v1-to-v2-image",
            description="V1 image element to V2",
            from_version=Version.v1,
            to_version=Version.v2,
            priority=100,
            validate=_of_type("image"),
            convert=wrap(image_to_v2),
        ),
        ConversionStrategy(
            name="v1-to-v2-line",
            description="V1 line element to V2",
            from_version=Version.v1,
            to_version=Version.v2,
            priority=100,
            validate=_of_type("line"),
            convert=wrap(line_to_v2),
        ),
        ConversionStrategy(
            name="v2-to-v1-generic",
            description="Any V2 element to V1",
            from_version=Version.v2,
            to_version=Version.v1,
            priority=50,
            validate=_is_v2,
            convert=wrap(element_to_v1),
        ),
    ]


# ============================================================
# RESULTS
# ============================================================

@dataclass
class BatchStats:
    """Counts for one smart_batch_convert call; total = converted + failed + skipped."""
    total: int = 0
    converted: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "converted": self.converted,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class BatchResult:
    """Output elements, the inputs that failed, and the counts."""
    converted: List[Any] = field(default_factory=list)
    failed: List[Any] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)


@dataclass
class StrategyRecommendation:
    """Advisory target version for a corpus. Not a guarantee."""
    recommended_version: Version
    confidence: float
    reasoning: List[str] = field(default_factory=list)
    scores: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommended_version": self.recommended_version.value,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "scores": dict(self.scores),
        }


@dataclass
class PreviewDetail:
    element: Any
    status: Literal["convert", "skip", "fail"]
    strategy: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class PreviewSummary:
    total: int = 0
    will_convert: int = 0
    will_skip: int = 0
    will_fail: int = 0


@dataclass
class ConversionPreview:
    """Dry-run classification of a batch; nothing is converted."""
    summary: PreviewSummary
    details: List[PreviewDetail] = field(default_factory=list)


@dataclass
class AutoConvertResult:
    converted: List[Any]
    strategy: Version
    confidence: float


# ============================================================
# CONVERTER
# ============================================================

def _element_id(element: Any) -> Any:
    return element.get("id") if isinstance(element, dict) else None


class SmartVersionConverter:
    """Strategy-driven converter with configurable error handling.

    Args:
        options: Conversion options; defaults to ``ConversionOptions()``
        custom_strategies: Registered after the built-in strategies, so a
            custom strategy reusing a built-in name replaces it
    """

    def __init__(
        self,
        options: Optional[ConversionOptions] = None,
        custom_strategies: Optional[Iterable[ConversionStrategy]] = None,
    ):
        self.options = options or ConversionOptions()
        self._strategies: Dict[str, ConversionStrategy] = {}

        for strategy in default_strategies(cache=self.options.cache):
            self.register_strategy(strategy)
        for strategy in custom_strategies or ():
            self.register_strategy(strategy)

    @property
    def strategies(self) -> List[ConversionStrategy]:
        return list(self._strategies.values())

    def register_strategy(self, strategy: ConversionStrategy) -> None:
        if strategy.name in self._strategies:
            logger.debug("Replacing conversion strategy %s", strategy.name)
        self._strategies[strategy.name] = strategy

    def get_applicable_strategy(
        self, element: Any, target: Union[Version, str]
    ) -> Optional[ConversionStrategy]:
        """Highest-priority strategy for element -> target, or None.

        None also means the element is already at ``target``.
        """
        target = Version(target)
        current = classify(element)
        if current == target:
            return None

        candidates = [
            s for s in self._strategies.values()
            if s.from_version == current and s.to_version == target and s.accepts(element)
        ]
        if not candidates:
            return None
        # max() keeps the first of equal priorities, i.e. registration order
        return max(candidates, key=lambda s: s.priority)

    def smart_convert(self, element: Any, target: Union[Version, str]) -> Any:
        """Convert one element.

        Returns the input unchanged when no strategy applies, the converted
        element on success, and whatever the error policy yields on failure
        (None for 'skip').
        """
        _, result = self._convert(element, Version(target))
        return result

    def _convert(self, element: Any, target: Version) -> Tuple[str, Any]:
        try:
            strategy = self.get_applicable_strategy(element, target)
            if strategy is None:
                return "skip", element

            converted = strategy.convert(element)
            if self.options.validate_output:
                self._validate_result(converted, target)

            if self.options.on_convert is not None:
                self.options.on_convert(element, converted)
            return "convert", converted

        # Strategies and their predicates are caller-supplied and may raise anything
        except Exception as exc:
            result = self._handle_error(exc, element, target)
            return ("fail" if result is None else "convert"), result

    @staticmethod
    def _validate_result(converted: Any, target: Version) -> None:
        if converted is None:
            raise ValidationFailedError(target.value)
        actual = classify(converted)
        if actual != target:
            raise ValidationFailedError(target.value, actual.value)

    def _handle_error(self, exc: Exception, element: Any, target: Version) -> Any:
        if self.options.on_error is not None:
            self.options.on_error(exc, element)

        mode = self.options.error_handling
        if mode == "throw":
            raise exc

        if mode == "default":
            fallback = auto_to_v2 if target == Version.v2 else auto_to_v1
            try:
                return fallback(element)
            except Exception as fallback_exc:
                logger.warning(
                    "Fallback conversion of element %s to %s failed: %s",
                    _element_id(element), target.value, fallback_exc,
                )
                return None

        logger.debug("Skipping element %s: %s", _element_id(element), exc)
        return None

    def smart_batch_convert(self, elements: Iterable[Any], target: Union[Version, str]) -> BatchResult:
        """Convert a batch, sorting each element into converted, failed or skipped.

        Skipped elements had no applicable strategy. Those already at
        ``target`` still appear in the output list; the rest are dropped
        unless ``preserve_unsupported`` is set.
        """
        target = Version(target)
        result = BatchResult()

        for element in elements:
            result.stats.total += 1
            status, converted = self._convert(element, target)

            if status == "skip":
                result.stats.skipped += 1
                if self.options.preserve_unsupported or classify(element) == target:
                    result.converted.append(element)
            elif converted is None:
                result.stats.failed += 1
                result.failed.append(element)
            else:
                result.stats.converted += 1
                result.converted.append(converted)

        logger.info(
            "Batch conversion to %s: %d converted, %d failed, %d skipped",
            target.value, result.stats.converted, result.stats.failed, result.stats.skipped,
        )
        return result

    def infer_best_strategy(self, elements: List[Any]) -> StrategyRecommendation:
        """Recommend a target version for a corpus.

        Advisory only: a fixed point-scoring heuristic over the version
        majority, V2-only features, compatibility and a bias toward V2.
        """
        versions = [classify(el) for el in elements]
        total = len(versions)
        v1_ratio = versions.count(Version.v1) / total if total else 0
        v2_ratio = versions.count(Version.v2) / total if total else 0

        v1_score = 0
        v2_score = 0
        reasoning: List[str] = []

        if v2_ratio > MAJORITY_RATIO:
            v2_score += SCORE_WEIGHTS["v2_majority"]
            reasoning.append(f"{round(v2_ratio * 100)}% of elements are already V2")
        if v1_ratio > MAJORITY_RATIO:
            v1_score += SCORE_WEIGHTS["v1_majority"]
            reasoning.append(f"{round(v1_ratio * 100)}% of elements are V1")

        has_v2_features = any(
            isinstance(el, dict) and any(el.get(key) for key in V2_FEATURE_FIELDS)
            for el, version in zip(elements, versions)
            if version == Version.v2
        )
        if has_v2_features:
            v2_score += SCORE_WEIGHTS["v2_features"]
            reasoning.append("V2-only features detected")

        if check_compatibility(elements).compatible:
            v2_score += SCORE_WEIGHTS["compatibility"]
            reasoning.append("Fully compatible with the V2 schema")
        else:
            v1_score += SCORE_WEIGHTS["compatibility"]
            reasoning.append("V2 compatibility issues found")

        v2_score += SCORE_WEIGHTS["forward_bias"]

        recommended = Version.v2 if v2_score > v1_score else Version.v1
        top = max(v1_score, v2_score)
        confidence = min(abs(v2_score - v1_score) / top, 1.0) if top else 0.0
        reasoning.append(f"Recommend {recommended.value.upper()} (confidence: {round(confidence * 100)}%)")

        return StrategyRecommendation(
            recommended_version=recommended,
            confidence=confidence,
            reasoning=reasoning,
            scores={"v1": v1_score, "v2": v2_score},
        )

    def preview_conversion(self, elements: Iterable[Any], target: Union[Version, str]) -> ConversionPreview:
        """Classify each element as convert / skip / fail without converting anything."""
        target = Version(target)
        preview = ConversionPreview(summary=PreviewSummary())

        for element in elements:
            preview.summary.total += 1
            if classify(element) == target:
                preview.details.append(PreviewDetail(element, "skip", reason="Already at target version"))
                preview.summary.will_skip += 1
                continue

            strategy = self.get_applicable_strategy(element, target)
            if strategy is not None:
                preview.details.append(PreviewDetail(element, "convert", strategy=strategy.name))
                preview.summary.will_convert += 1
            else:
                preview.details.append(PreviewDetail(element, "fail", reason="No applicable conversion strategy"))
                preview.summary.will_fail += 1

        return preview


# ============================================================
# PRESETS / HELPERS
# ============================================================

CONVERTER_PRESETS: Dict[str, Dict[str, Any]] = {
    "standard": {},
    "conservative": {
        "error_handling": "skip",
        "preserve_unsupported": True,
        "validate_output": True,
    },
    "aggressive": {
        "error_handling": "default",
        "preserve_unsupported": False,
        "validate_output": False,
    },
}


def create_converter(preset: str = "standard", **overrides: Any) -> SmartVersionConverter:
    """Build a fresh converter from a named preset; keyword overrides win."""
    if preset not in CONVERTER_PRESETS:
        raise ValueError(
            f"Unknown converter preset '{preset}'. Available: {', '.join(CONVERTER_PRESETS)}"
        )
    options = ConversionOptions(**{**CONVERTER_PRESETS[preset], **overrides})
    return SmartVersionConverter(options)


def to_v2(elements: Iterable[Any], converter: Optional[SmartVersionConverter] = None) -> List[Any]:
    return (converter or create_converter()).smart_batch_convert(elements, Version.v2).converted


def to_v1(elements: Iterable[Any], converter: Optional[SmartVersionConverter] = None) -> List[Any]:
    return (converter or create_converter()).smart_batch_convert(elements, Version.v1).converted


def auto_convert(elements: List[Any], converter: Optional[SmartVersionConverter] = None) -> AutoConvertResult:
    """Convert to whichever version infer_best_strategy recommends."""
    converter = converter or create_converter()
    recommendation = converter.infer_best_strategy(elements)
    batch = converter.smart_batch_convert(elements, recommendation.recommended_version)
    return AutoConvertResult(
        converted=batch.converted,
        strategy=recommendation.recommended_version,
        confidence=recommendation.confidence,
    )
