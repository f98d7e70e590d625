"""Exceptions raised by the conversion layer."""

from typing import Any, Optional


class ConversionError(ValueError):
    """Base class for every V1/V2 conversion failure."""


class GradientValidationError(ConversionError):
    """A V1 gradient does not carry enough colors to be rendered."""


class UnsupportedElementError(ConversionError):
    """An element kind has no representation in the requested version."""

    def __init__(self, element_type: Any, target: str = "V1"):
        self.element_type = element_type
        super().__init__(f"Unsupported element type for {target} conversion: {element_type}")


class ValidationFailedError(ConversionError):
    """A converted element does not detect as the version it was converted to."""

    def __init__(self, expected: str, actual: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        detail = f" (detected {actual})" if actual else ""
        super().__init__(f"Converted element failed validation for {expected}{detail}")


class InvalidInputError(ValueError):
    """Middleware input is neither an element, an element list, nor a wrapper dict."""
