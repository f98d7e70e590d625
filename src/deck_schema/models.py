"""
Schema Models

Pydantic v2 models for the static presentation schema: V1 theme-aware
color objects, V2 plain-string styling, element base fields, and the two
generations of slide background. Conversion code works on plain dicts;
these models validate those dicts at the edges and document their shape.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


DEFAULT_COLOR = "#000000"


class Version(str, Enum):
    """Schema generation of an element."""
    v1 = "v1"
    v2 = "v2"


class ElementType(str, Enum):
    """Element kind discriminator shared by both schema generations."""
    text = "text"
    image = "image"
    shape = "shape"
    line = "line"
    chart = "chart"
    table = "table"
    latex = "latex"
    video = "video"
    audio = "audio"
    # V1 only: AI-generated placeholder with no V2 counterpart
    none = "none"


class ThemeColorType(str, Enum):
    """Office theme palette slots."""
    accent1 = "accent1"
    accent2 = "accent2"
    accent3 = "accent3"
    accent4 = "accent4"
    accent5 = "accent5"
    accent6 = "accent6"
    dk1 = "dk1"
    dk2 = "dk2"
    lt1 = "lt1"
    lt2 = "lt2"


class PageTag(str, Enum):
    """Semantic tag of a V1 project slide."""
    title = "title"
    catalogue = "catalogue"
    chapter = "chapter"
    content = "content"
    end = "end"
    list = "list"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# COLORS
# ============================================================

class ThemeColorRef(_CamelModel):
    """Structured theme reference inside a V1 color."""
    color: str
    type: str


class ColorConfig(_CamelModel):
    """V1 color: resolved value plus optional theme metadata."""
    color: str
    theme_color: Optional[ThemeColorRef] = Field(None, alias="themeColor")
    color_type: Optional[ThemeColorType] = Field(None, alias="colorType")
    color_index: Optional[float] = Field(None, alias="colorIndex")
    opacity: Optional[float] = Field(None, ge=0, le=1)


# ============================================================
# GRADIENT / SHADOW / OUTLINE
# ============================================================

GradientType = Literal["linear", "radial"]


class GradientColor(BaseModel):
    """A single V2 gradient stop; pos runs 0-100."""
    pos: float = Field(ge=0, le=100)
    color: str


class Gradient(BaseModel):
    """V2 gradient with any number of stops."""
    type: GradientType
    colors: List[GradientColor] = Field(min_length=2)
    rotate: float = 0


class V1Gradient(_CamelModel):
    """V1 gradient: always exactly two theme-aware colors."""
    type: GradientType
    theme_color: List[ColorConfig] = Field(alias="themeColor", min_length=2, max_length=2)
    rotate: float = 0


class Shadow(BaseModel):
    h: float
    v: float
    blur: float
    color: str


class V1Shadow(_CamelModel):
    h: float
    v: float
    blur: float
    theme_color: ColorConfig = Field(alias="themeColor")


class Outline(BaseModel):
    style: Optional[Literal["solid", "dashed", "dotted"]] = None
    width: Optional[float] = None
    color: Optional[str] = None


class V1Outline(_CamelModel):
    style: Optional[Literal["solid", "dashed"]] = None
    width: Optional[float] = None
    theme_color: Optional[ColorConfig] = Field(None, alias="themeColor")


# ============================================================
# ELEMENTS
# ============================================================

class ElementLink(BaseModel):
    type: Literal["web", "slide"]
    target: str


class BaseElement(_CamelModel):
    """Fields every element kind carries. Kind-specific payload is kept as extra data."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: ElementType
    left: float = 0
    top: float = 0
    width: float = 0
    height: float = 0
    rotate: float = 0
    lock: Optional[bool] = None
    group_id: Optional[str] = Field(None, alias="groupId")
    link: Optional[ElementLink] = None
    name: Optional[str] = None


class V1BaseElement(BaseElement):
    """V1 element: adds business/provenance metadata foreign to V2."""
    tag: Optional[str] = None
    index: Optional[int] = None
    from_: Optional[str] = Field(None, alias="from")
    is_default: Optional[bool] = Field(None, alias="isDefault")


# ============================================================
# SLIDES
# ============================================================

class SlideBackgroundImage(BaseModel):
    src: str
    size: Literal["cover", "contain", "repeat"] = "cover"


class SlideBackground(BaseModel):
    """V2 slide background, discriminated by type."""
    type: Literal["solid", "image", "gradient"]
    color: Optional[str] = None
    image: Optional[SlideBackgroundImage] = None
    gradient: Optional[Gradient] = None


class ProjectSolidBackground(_CamelModel):
    type: Literal["solid"]
    theme_color: ColorConfig = Field(alias="themeColor")


class ProjectImageBackground(_CamelModel):
    type: Literal["image"]
    image: str
    image_size: Optional[Literal["cover", "contain", "repeat"]] = Field(None, alias="imageSize")


class ProjectGradientBackground(_CamelModel):
    type: Literal["gradient"]
    gradient_type: GradientType = Field(alias="gradientType")
    gradient_color: List[ColorConfig] = Field(alias="gradientColor", min_length=2, max_length=2)
    gradient_rotate: Optional[float] = Field(None, alias="gradientRotate", ge=0, le=360)


ProjectSlideBackground = Annotated[
    Union[ProjectSolidBackground, ProjectImageBackground, ProjectGradientBackground],
    Field(discriminator="type"),
]


class Slide(_CamelModel):
    """V2 slide. Element order is z-order."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    elements: List[Dict[str, Any]] = Field(default_factory=list)
    background: Optional[SlideBackground] = None
    animations: List[Dict[str, Any]] = Field(default_factory=list)
    remark: str = ""


class ProjectSlide(_CamelModel):
    """V1 project slide with business fields and the V1 background."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    elements: List[Dict[str, Any]]
    background: Optional[ProjectSlideBackground] = None
    page_id: Optional[str] = Field(None, alias="pageId")
    tag: Optional[PageTag] = None
    list_count: Optional[int] = Field(None, alias="listCount")
    ai_image: Optional[bool] = Field(None, alias="aiImage")
    ai_image_status: Optional[Literal["pending", "success", "failed"]] = Field(None, alias="aiImageStatus")
    fill_page_type: Optional[int] = Field(None, alias="fillPageType")
    pay_type: Optional[Literal["free", "not_free"]] = Field(None, alias="payType")
    list_flag: Optional[str] = Field(None, alias="listFlag")
    auto_fill: Optional[bool] = Field(None, alias="autoFill")

    @model_validator(mode="after")
    def list_slides_need_list_fields(self) -> "ProjectSlide":
        """List pages must declare pay type, list flag and auto-fill."""
        if self.tag == PageTag.list:
            missing = [
                name for name, value in (
                    ("payType", self.pay_type),
                    ("listFlag", self.list_flag),
                    ("autoFill", self.auto_fill),
                )
                if value is None
            ]
            if missing:
                raise ValueError(f"List slide requires {', '.join(missing)}")
        return self


# ============================================================
# VALIDATION HELPERS
# ============================================================

def _is_valid(model: Any, data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    try:
        model.model_validate(data)
    except ValidationError:
        return False
    return True


def validate_color_config(data: Any) -> bool:
    """Return True when data is a well-formed V1 ColorConfig (object themeColor only)."""
    return _is_valid(ColorConfig, data)


def validate_project_slide(data: Any) -> bool:
    """Return True when data is a well-formed V1 project slide."""
    return _is_valid(ProjectSlide, data)


_PROJECT_BACKGROUNDS = {
    "solid": ProjectSolidBackground,
    "image": ProjectImageBackground,
    "gradient": ProjectGradientBackground,
}


def validate_project_background(data: Any) -> bool:
    """Return True when data is a well-formed V1 project slide background."""
    if not isinstance(data, dict):
        return False
    model = _PROJECT_BACKGROUNDS.get(data.get("type"))
    return model is not None and _is_valid(model, data)


def is_project_slide_list(slide: Dict[str, Any]) -> bool:
    """A list page is tagged 'list' and carries its pay type."""
    return slide.get("tag") == PageTag.list.value and "payType" in slide
