"""
Version Middleware

Configuration-driven pipeline that sits between the editor, API and storage
layers. Each call resolves a target version from its ProcessingContext,
converts through the unified wrapper, and (for output) shapes the result for
the declared consumer:

- ``api``: ``{elements, metadata}``
- ``storage``: ``{version, elements, checksum}``
- ``display``: one ``{id, type, left, top, width, height}`` dict per element
"""

import dataclasses
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .diagnose import check_compatibility
from .errors import ConversionError, InvalidInputError
from .models import Version
from .unified import UnifiedElement, normalize_to_version

logger = logging.getLogger(__name__)

LOG_LEVELS = ("none", "error", "warn", "info", "debug")

_LOGGING_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


# ============================================================
# CONFIG / CONTEXT
# ============================================================

class MiddlewareConfig(BaseModel):
    """Middleware behaviour; every field has a default."""
    default_version: Version = Version.v2
    auto_convert: bool = True
    preserve_original: bool = False
    error_handling: Literal["throw", "skip", "warn"] = "warn"
    log_level: Literal["none", "error", "warn", "info", "debug"] = "warn"


class ProcessingContext(BaseModel):
    """Where data came from and where it is going."""
    source: Literal["api", "ui", "storage", "import", "export"]
    target: Literal["api", "ui", "storage", "display", "processing"]
    preferred_version: Optional[Version] = None
    force_conversion: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)


ContextLike = Union[ProcessingContext, Dict[str, Any]]


@dataclass
class ProcessingStats:
    processed: int = 0
    converted: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


@dataclass
class ProcessingResult:
    """Processed data plus bookkeeping. ``processing_time`` is in milliseconds."""
    data: Any
    original: Any = None
    stats: ProcessingStats = field(default_factory=ProcessingStats)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    processing_time: float = 0.0


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _as_context(context: ContextLike) -> ProcessingContext:
    if isinstance(context, ProcessingContext):
        return context
    return ProcessingContext.model_validate(context)


# ============================================================
# MIDDLEWARE
# ============================================================

class VersionMiddleware:
    """Resolves a target version per call and converts elements to it.

    With ``auto_convert`` off, elements pass through untouched unless the
    context sets ``force_conversion``.
    """

    def __init__(self, config: Optional[MiddlewareConfig] = None, **overrides: Any):
        base = config or MiddlewareConfig()
        self.config = MiddlewareConfig(**{**base.model_dump(), **overrides}) if overrides else base

    def _log(self, level: str, message: str, *args: Any) -> None:
        if LOG_LEVELS.index(level) <= LOG_LEVELS.index(self.config.log_level):
            logger.log(_LOGGING_LEVELS[level], "[VersionMiddleware] " + message, *args)

    def _should_convert(self, context: ProcessingContext) -> bool:
        return self.config.auto_convert or context.force_conversion

    def _original(self, data: Any) -> Any:
        return data if self.config.preserve_original else None

    def determine_target_version(self, context: ContextLike) -> Version:
        """preferred_version wins; storage traffic prefers V2; otherwise the default."""
        context = _as_context(context)
        if context.preferred_version is not None:
            return context.preferred_version
        if context.source == "api" and context.target == "storage":
            return Version.v2
        if context.source == "storage":
            return Version.v2
        return self.config.default_version

    # ------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------

    def process_element(self, element: Dict[str, Any], context: ContextLike) -> ProcessingResult:
        start = time.perf_counter()
        context = _as_context(context)
        warnings: List[str] = []

        self._log("debug", "Processing element %s (%s)", element.get("id"), element.get("type"))

        if not self._should_convert(context):
            return ProcessingResult(
                data=element,
                original=self._original(element),
                stats=ProcessingStats(processed=1, skipped=1),
                processing_time=_elapsed_ms(start),
            )

        try:
            unified = UnifiedElement(element)
            target = self.determine_target_version(context)
            data = unified.as_v1() if target == Version.v1 else unified.as_v2()
        except ConversionError as exc:
            message = f"Failed to process element: {exc}"
            self._log("error", message)
            if self.config.error_handling == "throw":
                raise
            return ProcessingResult(
                data=None,
                original=self._original(element),
                stats=ProcessingStats(processed=1, errors=1),
                errors=[message],
                processing_time=_elapsed_ms(start),
            )

        if data is None and self.config.error_handling == "warn":
            warnings.append(f"Could not convert element {element.get('id')} to {target.value.upper()}")

        return ProcessingResult(
            data=data,
            original=self._original(element),
            stats=ProcessingStats(
                processed=1,
                converted=1 if data is not None and unified.version != target else 0,
                skipped=0 if data is not None else 1,
            ),
            warnings=warnings,
            processing_time=_elapsed_ms(start),
        )

    def process_elements(self, elements: List[Dict[str, Any]], context: ContextLike) -> ProcessingResult:
        start = time.perf_counter()
        context = _as_context(context)
        warnings: List[str] = []
        errors: List[str] = []
        processed: List[Dict[str, Any]] = []

        self._log("info", "Processing %d elements", len(elements))

        if not self._should_convert(context):
            return ProcessingResult(
                data=list(elements),
                original=self._original(elements),
                stats=ProcessingStats(processed=len(elements), skipped=len(elements)),
                processing_time=_elapsed_ms(start),
            )

        target = self.determine_target_version(context)

        report = check_compatibility(elements)
        if not report.compatible:
            warnings.extend(report.messages)
            self._log("warn", "Compatibility check found %d issues", len(report.issues))

        try:
            result = normalize_to_version(elements, target)
            processed.extend(result.converted)
            if result.skipped:
                warnings.append(f"Skipped {result.skipped} elements that could not be converted")
            self._log("info", "Converted batch to %s: %d elements", target.value, result.converted_count)
        except ConversionError as exc:
            message = f"Batch processing failed: {exc}"
            errors.append(message)
            self._log("error", message)
            if self.config.error_handling == "throw":
                raise

        return ProcessingResult(
            data=processed,
            original=self._original(elements),
            stats=ProcessingStats(
                processed=len(elements),
                converted=len(processed),
                skipped=len(elements) - len(processed),
                errors=len(errors),
            ),
            warnings=warnings,
            errors=errors,
            processing_time=_elapsed_ms(start),
        )

    def preprocess_input(self, data: Any, context: ContextLike) -> ProcessingResult:
        """Normalize a list, an ``{"elements": [...]}`` wrapper or a single element, then process it.

        Raises:
            InvalidInputError: for anything else
        """
        self._log("debug", "Preprocessing input of type %s", type(data).__name__)

        if isinstance(data, list):
            elements = data
        elif isinstance(data, dict) and isinstance(data.get("elements"), list):
            elements = data["elements"]
        elif isinstance(data, dict) and data:
            elements = [data]
        else:
            raise InvalidInputError("Invalid input data format")

        return self.process_elements(elements, context)

    def postprocess_output(self, elements: List[Dict[str, Any]], context: ContextLike) -> ProcessingResult:
        context = _as_context(context)
        processed = self.process_elements(elements, context)
        target = self.determine_target_version(context)

        if context.target == "api":
            output: Any = {
                "elements": processed.data,
                "metadata": {
                    "version": target.value,
                    "processedAt": datetime.now(timezone.utc).isoformat(),
                    "stats": processed.stats.to_dict(),
                },
            }
        elif context.target == "storage":
            output = {
                "version": target.value,
                "elements": processed.data,
                "checksum": self._checksum(processed.data),
            }
        elif context.target == "display":
            output = [
                {
                    "id": el.get("id"),
                    "type": el.get("type"),
                    "left": el.get("left"),
                    "top": el.get("top"),
                    "width": el.get("width"),
                    "height": el.get("height") or 0,
                }
                for el in processed.data
            ]
        else:
            output = processed.data

        return dataclasses.replace(processed, data=output)

    @staticmethod
    def _checksum(data: Any) -> str:
        """Non-cryptographic drift marker: 32-bit string hash of the canonical JSON."""
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
        h = 0
        for ch in payload:
            h = (h * 31 + ord(ch)) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
        return format(abs(h), "x")[:16]

    # ------------------------------------------------------------
    # Config
    # ------------------------------------------------------------

    def update_config(self, **changes: Any) -> None:
        """Merge and re-validate; invalid values raise pydantic.ValidationError."""
        self.config = MiddlewareConfig(**{**self.config.model_dump(), **changes})
        self._log("info", "Middleware config updated: %s", self.config.model_dump(mode="json"))

    def get_config(self) -> MiddlewareConfig:
        return self.config.model_copy()


# ============================================================
# PRESETS / HELPERS
# ============================================================

MIDDLEWARE_PRESETS: Dict[str, Dict[str, Any]] = {
    "api": {
        "default_version": "v2",
        "auto_convert": True,
        "preserve_original": False,
        "error_handling": "warn",
        "log_level": "warn",
    },
    "storage": {
        "default_version": "v2",
        "auto_convert": True,
        "preserve_original": True,
        "error_handling": "skip",
        "log_level": "error",
    },
    "ui": {
        "default_version": "v2",
        "auto_convert": True,
        "preserve_original": False,
        "error_handling": "skip",
        "log_level": "none",
    },
    "import": {
        "default_version": "v2",
        "auto_convert": True,
        "preserve_original": True,
        "error_handling": "warn",
        "log_level": "info",
    },
}


def create_middleware(preset: str = "api", **overrides: Any) -> VersionMiddleware:
    """Build a fresh middleware from a named preset; keyword overrides win."""
    if preset not in MIDDLEWARE_PRESETS:
        raise ValueError(
            f"Unknown middleware preset '{preset}'. Available: {', '.join(MIDDLEWARE_PRESETS)}"
        )
    return VersionMiddleware(MiddlewareConfig(**{**MIDDLEWARE_PRESETS[preset], **overrides}))


def _as_list(data: Any) -> List[Any]:
    return data if isinstance(data, list) else [data]


def for_api(data: Any, middleware: Optional[VersionMiddleware] = None) -> ProcessingResult:
    middleware = middleware or create_middleware("api")
    return middleware.postprocess_output(_as_list(data), ProcessingContext(source="api", target="api"))


def for_storage(data: Any, middleware: Optional[VersionMiddleware] = None) -> ProcessingResult:
    middleware = middleware or create_middleware("storage")
    return middleware.postprocess_output(_as_list(data), ProcessingContext(source="ui", target="storage"))


def for_ui(data: Any, middleware: Optional[VersionMiddleware] = None) -> ProcessingResult:
    middleware = middleware or create_middleware("ui")
    return middleware.postprocess_output(_as_list(data), ProcessingContext(source="api", target="display"))


def for_import(data: Any, preferred_version: Union[Version, str] = Version.v2) -> ProcessingResult:
    """Preprocess imported data toward ``preferred_version``."""
    preferred_version = Version(preferred_version)
    middleware = create_middleware("import", default_version=preferred_version)
    context = ProcessingContext(source="import", target="processing", preferred_version=preferred_version)
    return middleware.preprocess_input(data, context)
