from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# === Enums ===


class Language(str, Enum):
    """Language tag selecting the font family of a page"""

    EN = "en"
    ZH_TW = "zh-tw"
    ZH_CN = "zh-cn"


class ElementKind(str, Enum):
    RECT = "rect"
    CIRCLE = "circle"
    LINE = "line"
    TEXT = "text"
    IMAGE = "image"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ImageFit(str, Enum):
    COVER = "cover"  # Fill the box, cropping overflow
    CONTAIN = "contain"  # Fit inside the box, letterboxing


class LabelPosition(str, Enum):
    """Where an arrow label sits relative to the arrow midpoint"""

    ABOVE = "above"
    BELOW = "below"
    LEFT = "left"
    RIGHT = "right"


# === Resolved geometry ===


class Style(BaseModel):
    model_config = ConfigDict(frozen=True)

    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0
    radius: float = 0
    opacity: float = 1.0
    dashed: bool = False
    font_family: Optional[str] = None
    font_size: float = 0
    bold: bool = False
    line_height: float = 1.2
    color: Optional[str] = None
    align: TextAlign = TextAlign.LEFT


class VisualElement(BaseModel):
    """One positioned, styled drawable unit.

    Rectangles, circles, texts and images occupy the box (x, y, w, h); a circle is
    the ellipse inscribed in its box. Lines run from (x, y) to (x2, y2). Text
    elements carry their already wrapped lines.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable role identifier, e.g. 'arrow.a1'")
    kind: ElementKind
    x: float
    y: float
    w: float = 0
    h: float = 0
    x2: Optional[float] = None
    y2: Optional[float] = None
    style: Style = Field(default_factory=Style)
    lines: Tuple[str, ...] = ()
    asset_key: Optional[str] = None
    fit: ImageFit = ImageFit.COVER
    marker_start: bool = False
    marker_end: bool = False
    anchor: Optional[Tuple[float, float]] = Field(default=None, description="Derived point, e.g. a label anchor")

    @property
    def center(self) -> Tuple[float, float]:
        if self.kind == ElementKind.LINE:
            return ((self.x + self.x2) / 2, (self.y + self.y2) / 2)
        return (self.x + self.w / 2, self.y + self.h / 2)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) of the element."""
        if self.kind == ElementKind.LINE:
            return (min(self.x, self.x2), min(self.y, self.y2), max(self.x, self.x2), max(self.y, self.y2))
        return (self.x, self.y, self.x + self.w, self.y + self.h)

    @model_validator(mode="after")
    def validate_line_end(self):
        """Lines need an end point."""
        if self.kind == ElementKind.LINE and (self.x2 is None or self.y2 is None):
            raise ValueError("line elements require x2 and y2")
        return self


class ResolvedGeometry(BaseModel):
    """Ordered drawables of one page, in paint order."""

    model_config = ConfigDict(frozen=True)

    template: str
    width: float
    height: float
    background: str
    language: Language = Language.EN
    font_family: str
    heading_font_family: str
    elements: Tuple[VisualElement, ...] = ()
    fit: Dict[str, float] = Field(default_factory=dict, description="Fitted values by name")

    def find(self, element_id: str) -> Optional[VisualElement]:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def by_prefix(self, prefix: str) -> List[VisualElement]:
        return [element for element in self.elements if element.id.startswith(prefix)]

    def out_of_bounds(self) -> List[VisualElement]:
        """Elements reaching outside the canvas (percentage-placed content may)."""
        outside = []
        for element in self.elements:
            left, top, right, bottom = element.bounds
            if left < 0 or top < 0 or right > self.width or bottom > self.height:
                outside.append(element)
        return outside


# === Template content ===


class ChromeFields(BaseModel):
    """Header/footer fields shared by content templates"""

    model_config = ConfigDict(extra="ignore")

    label: str = ""
    year: Optional[str] = Field(default=None, description="Overrides the default year")
    page_number: Optional[int] = None


class FlowNode(BaseModel):
    id: str
    x: float = Field(default=0, description="Left edge as a percentage of the chart width")
    y: float = Field(default=0, description="Top edge as a percentage of the chart height")
    width: float = 120
    height: float = 60
    radius: float = 6
    fill: Optional[str] = None
    text_color: Optional[str] = None
    heading: str = ""
    body: str = ""


class FlowArrow(BaseModel):
    id: str
    source: str
    target: str
    label: str = ""
    label_position: Optional[LabelPosition] = None
    bidirectional: bool = False


class LegendItem(BaseModel):
    color: Optional[str] = None
    label: str = ""


class Footnote(BaseModel):
    text: str = ""
    visible: bool = True


class FlowChartContent(ChromeFields):
    template: Literal["flow-chart"] = "flow-chart"
    heading: str = ""
    nodes: List[FlowNode] = []
    arrows: List[FlowArrow] = []
    arrow_color: Optional[str] = None
    legend: List[LegendItem] = []
    footnotes: List[Footnote] = []


class PhotoGalleryContent(ChromeFields):
    template: Literal["photo-gallery"] = "photo-gallery"
    photos: List[Optional[str]] = Field(default=[], description="Asset keys; null leaves a placeholder cell")


class PropertyGroup(BaseModel):
    label: str = ""
    items: List[str] = []


class SummaryRow(BaseModel):
    label: str = ""
    value: str = ""
    subvalue: str = ""


class MapTextListContent(ChromeFields):
    template: Literal["map-text-list"] = "map-text-list"
    map_image: Optional[str] = None
    heading: str = ""
    groups: List[PropertyGroup] = []
    show_summary_table: bool = False
    summary: List[SummaryRow] = []


class TextCard(BaseModel):
    heading: str = ""
    bullets: List[str] = []


class MapTextCardContent(ChromeFields):
    template: Literal["map-text-card"] = "map-text-card"
    map_image: Optional[str] = None
    cards: List[TextCard] = []
    arrows: List[bool] = Field(default=[], description="One flag per gap between consecutive cards")
    arrow_color: Optional[str] = None


class Callout(BaseModel):
    label: str = ""
    x: float = 0
    y: float = 0
    color: Optional[str] = None
    visible: bool = True


class MapTextOverlayContent(ChromeFields):
    template: Literal["map-text-overlay"] = "map-text-overlay"
    map_image: Optional[str] = None
    callouts: List[Callout] = []


class CircleItem(BaseModel):
    heading: str = ""
    body: str = ""


class ThreeCirclesContent(ChromeFields):
    template: Literal["three-circles"] = "three-circles"
    heading: str = ""
    circles: List[CircleItem] = []
    circle_border_color: Optional[str] = None


class TimelineEntry(BaseModel):
    year: str = ""
    heading: str = ""
    bullets: List[str] = []
    color: Optional[str] = None


class TimelineContent(ChromeFields):
    template: Literal["timeline"] = "timeline"
    heading: str = ""
    entries: List[TimelineEntry] = []
    line_color: Optional[str] = None
    bullet_color: Optional[str] = None
    photo: Optional[str] = None
    caption: str = ""


class TableColumn(BaseModel):
    header: str = ""
    width: float = Field(default=0, description="Width as a percentage of the table")


class TableRow(BaseModel):
    cells: List[str] = []
    highlighted: bool = False


class DataTableContent(ChromeFields):
    template: Literal["data-table"] = "data-table"
    heading: str = ""
    subtitle: str = ""
    columns: List[TableColumn] = []
    rows: List[TableRow] = []
    footnotes: List[str] = []


class GridCard(BaseModel):
    icon: Optional[str] = None
    heading: str = ""
    bullets: List[str] = []
    paragraph: str = ""


class MultiCardGridContent(ChromeFields):
    template: Literal["multi-card-grid"] = "multi-card-grid"
    cards: List[GridCard] = []


class CoverContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: Literal["cover"] = "cover"
    headline: str = ""
    year: Optional[str] = None
    hero_image: Optional[str] = None


class SectionDividerContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: Literal["section-divider"] = "section-divider"
    label: str = ""
    number: str = ""
    title: str = ""
    bar_color: Optional[str] = None


class DisclaimerContent(ChromeFields):
    template: Literal["disclaimer"] = "disclaimer"
    label: str = "Disclaimer"
    text: str = ""


class ContactContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: Literal["contact"] = "contact"
    year: Optional[str] = None
    logo_image: Optional[str] = None
    company_name: str = ""
    details: List[str] = []
    url: str = ""


class Badge(BaseModel):
    label: str = ""
    icon: Optional[str] = None


class ValuePropositionContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: Literal["value-proposition"] = "value-proposition"
    badges: List[Badge] = []
    body: str = ""
    accent_bar_visible: bool = True
    accent_bar_color: Optional[str] = None


class DiagramBranch(BaseModel):
    heading: str = ""
    body: str = ""


class DiagramContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: Literal["diagram"] = "diagram"
    logo_image: Optional[str] = None
    branches: List[DiagramBranch] = []


class IndexEntry(BaseModel):
    label: str = ""
    page: str = ""


class IndexSection(BaseModel):
    title: str = ""
    entries: List[IndexEntry] = []


class IndexContent(ChromeFields):
    template: Literal["index"] = "index"
    sections: List[IndexSection] = []
    image: Optional[str] = None


class ComparisonRow(BaseModel):
    label: str = ""
    ours: str = ""
    theirs: str = ""


class ComparisonTableContent(ChromeFields):
    template: Literal["comparison-table"] = "comparison-table"
    heading: str = ""
    competitor_label: str = ""
    rows: List[ComparisonRow] = []
    source_citation: str = ""


class ChartBar(BaseModel):
    label: str = ""
    value: float = 0


class TextChartContent(ChromeFields):
    template: Literal["text-chart"] = "text-chart"
    heading: str = ""
    bullets: List[str] = []
    mode: Literal["chart", "image"] = "chart"
    chart_title: str = ""
    bars: List[ChartBar] = []
    unit: str = ""
    bar_color: Optional[str] = None
    image: Optional[str] = None
    caption: str = ""


class TextImagesContent(ChromeFields):
    template: Literal["text-images"] = "text-images"
    heading: str = ""
    body: str = ""
    bullets: List[str] = []
    logo_image: Optional[str] = None
    photos: List[Optional[str]] = []


class BeforeAfterCell(BaseModel):
    image: Optional[str] = None
    caption: str = ""


class BeforeAfterContent(ChromeFields):
    template: Literal["before-after"] = "before-after"
    heading: str = ""
    layout: Literal["2x2", "1x2", "2x1", "freeform"] = "1x2"
    cells: List[BeforeAfterCell] = []
    arrow_color: Optional[str] = None


class LogoEntry(BaseModel):
    logo: Optional[str] = None
    text: str = ""


class LogosTextTableContent(ChromeFields):
    template: Literal["logos-text-table"] = "logos-text-table"
    entries: List[LogoEntry] = []


PageContent = Annotated[
    Union[
        FlowChartContent,
        PhotoGalleryContent,
        MapTextListContent,
        MapTextCardContent,
        MapTextOverlayContent,
        ThreeCirclesContent,
        TimelineContent,
        DataTableContent,
        MultiCardGridContent,
        CoverContent,
        SectionDividerContent,
        DisclaimerContent,
        ContactContent,
        ValuePropositionContent,
        DiagramContent,
        IndexContent,
        ComparisonTableContent,
        TextChartContent,
        TextImagesContent,
        BeforeAfterContent,
        LogosTextTableContent,
    ],
    Field(discriminator="template"),
]


class Page(BaseModel):
    id: str
    order: int = 0
    content: PageContent


class Deck(BaseModel):
    id: str = "deck"
    name: str = "Untitled deck"
    language: Language = Language.EN
    pages: List[Page] = []

    def ordered_pages(self) -> List[Page]:
        """Pages sorted by ``order``; ties keep their list position."""
        return sorted(self.pages, key=lambda page: page.order)


# === API models ===


class ResolveRequest(BaseModel):
    page: Page
    language: Optional[Language] = Field(default=None, description="Defaults to the configured language")


class TemplateDefinition(BaseModel):
    id: str = Field(..., description="Template tag used in page content")
    name: str
    description: str
    category: Literal["structure", "text", "media", "data", "diagram"]
    auto_fit: bool = Field(default=False, description="Whether text shrinks to fit")


class AssetUploadResponse(BaseModel):
    key: str
    size: int
    content_type: str


class ExportRequest(BaseModel):
    deck: Deck
    language: Optional[Language] = Field(default=None, description="Defaults to the deck language")
