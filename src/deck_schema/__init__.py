"""
deck-schema

Versioned presentation element schema: models for the legacy V1 and the
standard V2 element shapes, and the adapters, detector, smart converter and
middleware that move data between them.
"""

__version__ = "0.1.0"

from .errors import (
    ConversionError,
    GradientValidationError,
    UnsupportedElementError,
    ValidationFailedError,
    InvalidInputError,
)

from .models import (
    DEFAULT_COLOR,
    Version,
    ElementType,
    ThemeColorType,
    ColorConfig,
    Gradient,
    V1Gradient,
    Slide,
    ProjectSlide,
    validate_project_slide,
    validate_project_background,
    is_project_slide_list,
)

from .colors import (
    color_to_v2,
    color_to_v1,
    gradient_to_v2,
    gradient_to_v1,
    shadow_to_v2,
    shadow_to_v1,
    outline_to_v2,
    outline_to_v1,
    convert_gradient,
    create_theme_color_config,
    validate_color_config,
)

from .detect import (
    classify,
    is_v1_element,
    is_v2_element,
    detect_elements_version,
)

from .elements import (
    element_to_v2,
    element_to_v1,
    elements_to_v2,
    elements_to_v1,
    auto_to_v2,
    auto_to_v1,
    slide_to_v2,
    slide_to_v1,
)

from .unified import (
    UnifiedElement,
    UnifiedElementCollection,
    batch_convert,
    normalize_to_version,
)

from .diagnose import (
    check_compatibility,
    check_gradient,
    CompatibilityReport,
)

from .converter import (
    ConversionOptions,
    ConversionStrategy,
    SmartVersionConverter,
    create_converter,
)

from .middleware import (
    MiddlewareConfig,
    ProcessingContext,
    VersionMiddleware,
    create_middleware,
)

from .config import (
    DeckSchemaConfig,
    load_config,
    save_config,
)

__all__ = [
    # Errors
    'ConversionError',
    'GradientValidationError',
    'UnsupportedElementError',
    'ValidationFailedError',
    'InvalidInputError',
    # Models
    'DEFAULT_COLOR',
    'Version',
    'ElementType',
    'ThemeColorType',
    'ColorConfig',
    'Gradient',
    'V1Gradient',
    'Slide',
    'ProjectSlide',
    'validate_project_slide',
    'validate_project_background',
    'is_project_slide_list',
    # Primitive converters
    'color_to_v2',
    'color_to_v1',
    'gradient_to_v2',
    'gradient_to_v1',
    'shadow_to_v2',
    'shadow_to_v1',
    'outline_to_v2',
    'outline_to_v1',
    'convert_gradient',
    'create_theme_color_config',
    'validate_color_config',
    # Detection
    'classify',
    'is_v1_element',
    'is_v2_element',
    'detect_elements_version',
    # Element converters
    'element_to_v2',
    'element_to_v1',
    'elements_to_v2',
    'elements_to_v1',
    'auto_to_v2',
    'auto_to_v1',
    'slide_to_v2',
    'slide_to_v1',
    # Unified wrapper
    'UnifiedElement',
    'UnifiedElementCollection',
    'batch_convert',
    'normalize_to_version',
    # Diagnostics
    'check_compatibility',
    'check_gradient',
    'CompatibilityReport',
    # Smart converter
    'ConversionOptions',
    'ConversionStrategy',
    'SmartVersionConverter',
    'create_converter',
    # Middleware
    'MiddlewareConfig',
    'ProcessingContext',
    'VersionMiddleware',
    'create_middleware',
    # Config
    'DeckSchemaConfig',
    'load_config',
    'save_config',
]
