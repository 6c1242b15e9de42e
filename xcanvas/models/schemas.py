"""
Pydantic Models and Schemas
===========================

Core data models for layout trees, engine options, render requests and the
internal structures produced by the layout solver.
"""

from typing import Optional, List, Any, Union, Tuple, Callable, Literal
from dataclasses import dataclass
from enum import Enum

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.types import StrictStr, StrictInt, StrictFloat


# A length: number, "<n>%", "<n>rem" or "auto"
SxSize = Union[StrictInt, StrictFloat, StrictStr]


# Enums
class Display(str, Enum):
    """Child distribution mode of a container."""
    BLOCK = "block"
    FLEX = "flex"


class PositionMode(str, Enum):
    """Positioning mode of a node inside its parent."""
    ABSOLUTE = "absolute"


class Overflow(str, Enum):
    """Overflow handling."""
    HIDDEN = "hidden"


class ObjectFit(str, Enum):
    """Image placement policy inside a destination rectangle."""
    CONTAIN = "contain"
    COVER = "cover"


class TextAlign(str, Enum):
    """Horizontal text alignment."""
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


class GradientDirection(str, Enum):
    """Axis of an alpha gradient."""
    TO_RIGHT = "to right"
    TO_BOTTOM = "to bottom"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)


# Visual attribute models
class Border(_CamelModel):
    """A single stroked border."""
    width: float = Field(..., ge=0, description="Stroke width in pixels")
    color: str = Field(..., description="Stroke color")
    offset: float = Field(0, description="Inset from the node edge")


class Shadow(_CamelModel):
    """Blurred drop shadow under text or images."""
    size: float = Field(..., ge=0, description="Blur size in pixels")
    color: str = Field("#000", description="Shadow color")
    repeat: int = Field(1, ge=1, alias="for", description="Number of stacked passes")


class OpacityGradient(_CamelModel):
    """Directional alpha gradient applied to an image."""
    direction: GradientDirection = Field(GradientDirection.TO_RIGHT)
    stops: List[Tuple[SxSize, float]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def from_sequence(cls, data: Any) -> Any:
        """Accept the compact ``["to right", [pos, opacity], ...]`` form."""
        if isinstance(data, (list, tuple)):
            if not data:
                return {"stops": []}
            return {"direction": data[0], "stops": list(data[1:])}
        return data


class UnsharpMask(_CamelModel):
    """Unsharp mask parameters."""
    amount: float = Field(..., description="Sharpening strength")
    radius: int = Field(..., ge=0, description="Blur radius in pixels")
    threshold: float = Field(0, ge=0, description="Minimum difference to sharpen")

    @model_validator(mode="before")
    @classmethod
    def from_sequence(cls, data: Any) -> Any:
        """Accept the compact ``[amount, radius, threshold]`` form."""
        if isinstance(data, (list, tuple)):
            keys = ("amount", "radius", "threshold")
            return dict(zip(keys, data))
        return data


# Props
class BoxProps(_CamelModel):
    """Box-model and visual properties shared by every node kind."""
    display: Display = Display.BLOCK
    position: Optional[PositionMode] = None
    z: float = 0

    # Sizing
    w: Optional[SxSize] = None
    h: Optional[SxSize] = None
    m: Optional[SxSize] = None
    mt: Optional[SxSize] = None
    mr: Optional[SxSize] = None
    mb: Optional[SxSize] = None
    ml: Optional[SxSize] = None
    p: Optional[SxSize] = None
    pt: Optional[SxSize] = None
    pr: Optional[SxSize] = None
    pb: Optional[SxSize] = None
    pl: Optional[SxSize] = None

    # Text
    font_size: Optional[SxSize] = Field(None, alias="fontSize")
    color: Optional[str] = None

    # Background and decoration
    background_color: Optional[str] = Field(None, alias="backgroundColor")
    background_image: Optional[StrictStr] = Field(None, alias="backgroundImage")
    background_blend_mode: Optional[str] = Field(None, alias="backgroundBlendMode")
    overflow: Optional[Overflow] = None
    border_radius: Optional[SxSize] = Field(None, alias="borderRadius")
    border: Optional[Union[Border, List[Border]]] = None
    shadow: Optional[Shadow] = None
    clip_path_line: Optional[List[SxSize]] = Field(None, alias="clipPathLine")
    opacity: Optional[float] = Field(None, ge=0.0, le=1.0)
    object_fit: Optional[ObjectFit] = Field(None, alias="objectFit")


class ContainerProps(BoxProps):
    """Properties of a container node."""
    text_align: Optional[TextAlign] = Field(None, alias="textAlign")


class ImageProps(BoxProps):
    """Properties of an image node."""
    id: Optional[str] = Field(None, description="Stable identity key for caching")
    refresh: bool = Field(True, description="Re-run generator sources on every render")
    clip_img_rect: Optional[Tuple[SxSize, SxSize, SxSize, SxSize]] = Field(
        None, alias="clipImgRect", description="Source crop: top, right, bottom, left"
    )
    opacity_gradient: Optional[OpacityGradient] = Field(None, alias="opacityGradient")
    unsharp_mask: Optional[UnsharpMask] = Field(None, alias="unsharpMask")


# Nodes
ImageSource = Union[StrictStr, Image.Image, Callable[..., Any]]


class ImageNode(_CamelModel):
    """Leaf node carrying a pixel source."""
    type: Literal["img"] = "img"
    props: ImageProps = Field(default_factory=ImageProps)
    src: ImageSource = Field(..., description="URL/path, inline bitmap or surface generator")


class ContainerNode(_CamelModel):
    """Box node holding ordered children."""
    type: Literal["div"] = "div"
    props: ContainerProps = Field(default_factory=ContainerProps)
    children: List[Union["ContainerNode", ImageNode, StrictStr, StrictInt, StrictFloat, None]] = Field(
        default_factory=list
    )

    @property
    def text(self) -> Optional[str]:
        """Inline text content, present when the first child is a string or number."""
        if not self.children:
            return None
        first = self.children[0]
        if isinstance(first, (str, int, float)) and not isinstance(first, bool):
            return str(first)
        return None


ContainerNode.model_rebuild()

Node = Union[ContainerNode, ImageNode]
Element = Union[ContainerNode, ImageNode, str, int, float, None]


# Layout results
@dataclass
class Position:
    """Absolute, fully resolved rectangle in output pixels."""
    x: float
    y: float
    z: float
    w: float
    h: float


@dataclass
class Structure:
    """A node paired with its resolved position and resolved children."""
    pos: Position
    elem: Element
    inner: Optional[List["Structure"]] = None


# Engine options and messages
class Options(_CamelModel):
    """Per-render options sent by the host. Unset fields use engine defaults."""
    canvas_width: Optional[int] = Field(None, gt=0, alias="canvasWidth")
    canvas_height: Optional[int] = Field(None, gt=0, alias="canvasHeight")
    font_face: Optional[Tuple[str, str]] = Field(
        None, alias="fontFace", description="Font family name and font file path"
    )
    font_size: Optional[float] = Field(None, gt=0, alias="fontSize")
    font_color: Optional[str] = Field(None, alias="fontColor")
    debug_mode: bool = Field(False, alias="debugMode")


class RenderRequest(_CamelModel):
    """Inbound host message."""
    surface: Optional[Any] = Field(None, description="Raster surface, first message only")
    options: Optional[Options] = None
    root: ContainerNode


# Parsing Results
class ParseResult(BaseModel):
    """Result of loading a render document."""
    success: bool = Field(..., description="Whether parsing succeeded")
    request: Optional[RenderRequest] = Field(None, description="Parsed render request")
    errors: List[str] = Field(default_factory=list, description="Parsing errors")
    warnings: List[str] = Field(default_factory=list, description="Parsing warnings")
    processing_time: Optional[float] = Field(None, description="Parsing time in seconds")
