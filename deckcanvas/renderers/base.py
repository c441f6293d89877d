"""Backend-independent part of the two renderers.

Both renderers walk the resolved elements in paint order, dispatch on the
element kind and record one ``DrawOp`` per element. Anything that decides
*where* something lands (image cropping, arrowheads, line baselines, text
anchors) is computed here so the backends only translate it to primitives.

Every primitive returns the box it put on the surface, mapped back from the
backend's own coordinates into canvas units, or ``None`` when it drew nothing.
The draw log holds those boxes, so two backends only agree when both actually
drew the same thing in the same place.
"""

import math
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import structlog
from PIL import Image, UnidentifiedImageError

from deckcanvas.schemas import ElementKind, ImageFit, ResolvedGeometry, TextAlign, VisualElement
from deckcanvas.services.autofit import baseline_offset

logger = structlog.get_logger(__name__)

PLACEHOLDER_FILL = "#E8E8E8"
DASH_PATTERN = (4, 3)

Assets = Mapping[str, Optional[bytes]]
Box = Tuple[float, float, float, float]


@dataclass(frozen=True)
class DrawOp:
    element_id: str
    kind: ElementKind
    bbox: Optional[Box]
    detail: str = ""


def parse_hex_color(value: Optional[str]) -> Optional[Tuple[int, int, int, int]]:
    """Parse '#RGB', '#RRGGBB' or '#RRGGBBAA' into an RGBA tuple; None for no color."""
    if not value:
        return None
    value = value.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(char * 2 for char in value)
    if len(value) == 6:
        value += "FF"
    if len(value) != 8:
        return None
    try:
        return tuple(int(value[i : i + 2], 16) for i in range(0, 8, 2))
    except ValueError:
        return None


def decode_image(data: Optional[bytes]) -> Optional[Image.Image]:
    """Decode image bytes with Pillow; undecodable data counts as absent."""
    if not data:
        return None
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("image_decode_failed", error=str(e), size=len(data))
        return None
    return image.convert("RGBA")


def image_placement(
    image_width: int, image_height: int, element: VisualElement
) -> Tuple[Tuple[int, int, int, int], Tuple[float, float, float, float]]:
    """Source crop box and destination rectangle of an image element.

    ``cover`` crops the source to the box aspect ratio and fills the box;
    ``contain`` keeps the whole source and centers it inside the box.
    """
    box_w, box_h = element.w, element.h
    if image_width <= 0 or image_height <= 0 or box_w <= 0 or box_h <= 0:
        return (0, 0, max(image_width, 0), max(image_height, 0)), (element.x, element.y, 0, 0)

    if element.fit == ImageFit.COVER:
        scale = max(box_w / image_width, box_h / image_height)
        crop_w = box_w / scale
        crop_h = box_h / scale
        left = (image_width - crop_w) / 2
        top = (image_height - crop_h) / 2
        crop = (round(left), round(top), round(left + crop_w), round(top + crop_h))
        return crop, (element.x, element.y, box_w, box_h)

    scale = min(box_w / image_width, box_h / image_height)
    draw_w = image_width * scale
    draw_h = image_height * scale
    dest = (element.x + (box_w - draw_w) / 2, element.y + (box_h - draw_h) / 2, draw_w, draw_h)
    return (0, 0, image_width, image_height), dest


def arrowhead(x1: float, y1: float, x2: float, y2: float, stroke_width: float) -> List[Tuple[float, float]]:
    """Triangle with its tip on (x2, y2) pointing away from (x1, y1)."""
    angle = math.atan2(y2 - y1, x2 - x1)
    length = max(6.0, stroke_width * 4)
    half = length / 2
    back_x = x2 - length * math.cos(angle)
    back_y = y2 - length * math.sin(angle)
    return [
        (x2, y2),
        (back_x + half * math.sin(angle), back_y - half * math.cos(angle)),
        (back_x - half * math.sin(angle), back_y + half * math.cos(angle)),
    ]


def text_line_positions(element: VisualElement) -> List[Tuple[str, float, float]]:
    """(line, anchor x, baseline y) for every line of a text element.

    The anchor x is the left edge, center or right edge of the box depending on
    the alignment.
    """
    style = element.style
    step = style.font_size * style.line_height
    offset = baseline_offset(style.font_size, style.line_height)
    if style.align == TextAlign.CENTER:
        anchor_x = element.x + element.w / 2
    elif style.align == TextAlign.RIGHT:
        anchor_x = element.x + element.w
    else:
        anchor_x = element.x
    return [(line, anchor_x, element.y + i * step + offset) for i, line in enumerate(element.lines)]


def effective_radius(element: VisualElement) -> float:
    """Corner radius clamped to half the shorter side."""
    return max(0.0, min(element.style.radius, element.w / 2, element.h / 2))


def text_line_box(anchor_x: float, baseline: float, element: VisualElement) -> Box:
    """Line slot around a drawn line: box width wide, from ascent to descent.

    The horizontal extent follows the anchor the line was drawn at, so a wrong
    anchor or alignment moves the slot.
    """
    style = element.style
    if style.align == TextAlign.CENTER:
        left = anchor_x - element.w / 2
    elif style.align == TextAlign.RIGHT:
        left = anchor_x - element.w
    else:
        left = anchor_x
    return (left, baseline - 0.8 * style.font_size, left + element.w, baseline + 0.2 * style.font_size)


def union_box(boxes: Iterable[Optional[Box]]) -> Optional[Box]:
    """Smallest box holding every given box; None when there are none."""
    boxes = [box for box in boxes if box is not None]
    if not boxes:
        return None
    return (
        min(box[0] for box in boxes),
        min(box[1] for box in boxes),
        max(box[2] for box in boxes),
        max(box[3] for box in boxes),
    )


class BaseRenderer:
    """Dispatches elements to backend primitives and records a draw log."""

    def __init__(self):
        self.draw_log: List[DrawOp] = []
        self._decoded: Dict[str, Optional[Image.Image]] = {}

    def _image_for(self, key: Optional[str], assets: Assets) -> Optional[Image.Image]:
        if not key:
            return None
        if key not in self._decoded:
            self._decoded[key] = decode_image(assets.get(key))
        return self._decoded[key]

    def draw_elements(self, geometry: ResolvedGeometry, assets: Assets) -> None:
        for element in geometry.elements:
            detail = ""
            drawn = None
            if element.kind == ElementKind.RECT:
                drawn = self.draw_rect(element)
            elif element.kind == ElementKind.CIRCLE:
                drawn = self.draw_circle(element)
            elif element.kind == ElementKind.LINE:
                drawn = self.draw_line(element)
            elif element.kind == ElementKind.TEXT:
                drawn = self.draw_text(element)
            elif element.kind == ElementKind.IMAGE:
                image = self._image_for(element.asset_key, assets)
                if image is None:
                    drawn = self.draw_placeholder(element)
                    detail = "placeholder"
                else:
                    drawn = self.draw_image(element, image)
            bbox = tuple(round(value, 2) for value in drawn) if drawn is not None else None
            self.draw_log.append(DrawOp(element.id, element.kind, bbox, detail))

    # Backend primitives, each returning the box it drew

    def draw_rect(self, element: VisualElement) -> Optional[Box]:
        raise NotImplementedError

    def draw_circle(self, element: VisualElement) -> Optional[Box]:
        raise NotImplementedError

    def draw_line(self, element: VisualElement) -> Optional[Box]:
        raise NotImplementedError

    def draw_text(self, element: VisualElement) -> Optional[Box]:
        raise NotImplementedError

    def draw_image(self, element: VisualElement, image: Image.Image) -> Optional[Box]:
        raise NotImplementedError

    def draw_placeholder(self, element: VisualElement) -> Optional[Box]:
        raise NotImplementedError
