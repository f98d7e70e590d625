"""
Version Diagnostics

Checks that catch schema problems before a batch is converted: version
mixing, V1-only element kinds, and malformed gradients of either generation.
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .detect import classify
from .models import Version


class Severity(str, Enum):
    """Severity of a compatibility issue."""
    error = "error"
    warning = "warning"
    info = "info"


@dataclass
class CompatibilityIssue:
    """A single compatibility finding."""
    code: str
    severity: Severity
    message: str
    recommendation: str = ""


@dataclass
class CompatibilityReport:
    """Aggregated compatibility results for a batch of elements."""
    issues: List[CompatibilityIssue] = field(default_factory=list)
    v1_count: int = 0
    v2_count: int = 0

    @property
    def total(self) -> int:
        return self.v1_count + self.v2_count

    @property
    def compatible(self) -> bool:
        return len(self.issues) == 0

    @property
    def messages(self) -> List[str]:
        return [i.message for i in self.issues]

    @property
    def recommendations(self) -> List[str]:
        return [i.recommendation for i in self.issues if i.recommendation]

    def print_report(self, file=None) -> None:
        """Print a human-readable compatibility report."""
        out = file or sys.stdout

        print("=" * 60, file=out)
        print("VERSION COMPATIBILITY REPORT", file=out)
        print("=" * 60, file=out)
        print(f"Elements: {self.total}  |  V1: {self.v1_count}  |  V2: {self.v2_count}", file=out)
        print(f"Issues: {len(self.issues)}", file=out)
        print("-" * 60, file=out)

        for issue in self.issues:
            prefix = {
                Severity.error: "ERROR  ",
                Severity.warning: "WARN   ",
                Severity.info: "INFO   ",
            }[issue.severity]
            print(f"  {prefix} {issue.code}: {issue.message}", file=out)
            if issue.recommendation:
                print(f"         -> {issue.recommendation}", file=out)

        print("-" * 60, file=out)
        if self.compatible:
            print("RESULT: Elements are compatible.", file=out)
        else:
            print("RESULT: Normalize before converting.", file=out)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "compatible": self.compatible,
            "v1_count": self.v1_count,
            "v2_count": self.v2_count,
            "total": self.total,
            "issues": [
                {
                    "code": i.code,
                    "severity": i.severity.value,
                    "message": i.message,
                    "recommendation": i.recommendation,
                }
                for i in self.issues
            ],
            "recommendations": self.recommendations,
        }


# ============================================================
# COMPATIBILITY CHECKS
# ============================================================

def _check_version_mixing(report: CompatibilityReport) -> None:
    """VER-001: Both generations in one batch."""
    if report.v1_count > 0 and report.v2_count > 0:
        report.issues.append(CompatibilityIssue(
            code="VER-001",
            severity=Severity.warning,
            message=f"Mixed versions detected: {report.v1_count} V1 elements, {report.v2_count} V2 elements",
            recommendation="Normalize all elements to V2 for best compatibility",
        ))


def _check_none_elements(v1_elements: List[Mapping[str, Any]], report: CompatibilityReport) -> None:
    """VER-002: V1 'none' placeholders have no V2 form."""
    none_count = sum(1 for el in v1_elements if el.get("type") == "none")
    if none_count:
        report.issues.append(CompatibilityIssue(
            code="VER-002",
            severity=Severity.warning,
            message=f"Found {none_count} V1-only 'none' elements, which V2 does not support",
            recommendation="Convert 'none' elements to text or another V2 type, or drop them",
        ))


def check_compatibility(elements: Iterable[Any]) -> CompatibilityReport:
    """Run the compatibility checks over a batch of elements."""
    report = CompatibilityReport()
    v1_elements: List[Mapping[str, Any]] = []

    for element in elements:
        if classify(element) == Version.v1:
            report.v1_count += 1
            v1_elements.append(element)
        else:
            report.v2_count += 1

    _check_version_mixing(report)
    _check_none_elements(v1_elements, report)
    return report


# ============================================================
# GRADIENT CHECKS
# ============================================================

@dataclass
class GradientReport:
    """Validity of a single gradient object."""
    version: str
    valid: bool = True
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "valid": self.valid, "issues": list(self.issues)}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_gradient(gradient: Optional[Mapping[str, Any]]) -> GradientReport:
    """Identify a gradient's generation and list what is wrong with it.

    V1 gradients must carry exactly two colors, each with ``color`` or
    ``themeColor``. V2 gradients need at least two stops, each with a
    numeric ``pos`` and a string ``color``.
    """
    if not isinstance(gradient, Mapping):
        return GradientReport("unknown", False, ["Unrecognized gradient format"])

    theme_colors = gradient.get("themeColor")
    if isinstance(theme_colors, (list, tuple)):
        report = GradientReport(Version.v1.value)
        if len(theme_colors) != 2:
            report.issues.append("V1 gradient must contain exactly 2 colors")
        for index, color in enumerate(theme_colors, start=1):
            if not isinstance(color, Mapping) or not (color.get("color") or color.get("themeColor")):
                report.issues.append(f"V1 gradient color {index} is missing color or themeColor")
        report.valid = not report.issues
        return report

    stops = gradient.get("colors")
    if isinstance(stops, (list, tuple)):
        report = GradientReport(Version.v2.value)
        if len(stops) < 2:
            report.issues.append("V2 gradient must contain at least 2 color stops")
        for index, stop in enumerate(stops, start=1):
            if not isinstance(stop, Mapping) or not _is_number(stop.get("pos")) or not isinstance(stop.get("color"), str):
                report.issues.append(f"V2 gradient color stop {index} is malformed")
        report.valid = not report.issues
        return report

    return GradientReport("unknown", False, ["Unrecognized gradient format"])
