"""Preview/export parity checks.

``check_parity`` draws one resolved page on both backends and compares their
draw logs. ``measure_drift`` re-measures the wrapped lines of a page with a real
measurer to find where the analytic width estimate is too optimistic (wide
characters, mixed scripts).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from deckcanvas.renderers.base import Assets, DrawOp
from deckcanvas.renderers.export import ExportRenderer
from deckcanvas.renderers.preview import PreviewRenderer
from deckcanvas.schemas import ElementKind, ResolvedGeometry
from deckcanvas.services.autofit import TextMeasurer

logger = structlog.get_logger(__name__)

BOX_TOLERANCE = 0.01


@dataclass
class ParityReport:
    template: str
    preview_ops: int
    export_ops: int
    mismatches: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.mismatches


@dataclass(frozen=True)
class LineDrift:
    element_id: str
    line: str
    estimated_width: float
    measured_width: float
    box_width: float


def compare_draw_logs(preview: List[DrawOp], export: List[DrawOp], tolerance: float = BOX_TOLERANCE) -> List[str]:
    """Describe every difference between two draw logs; empty when they agree."""
    mismatches = []
    if len(preview) != len(export):
        mismatches.append(f"op count differs: preview={len(preview)} export={len(export)}")
    for index, (left, right) in enumerate(zip(preview, export)):
        if left.element_id != right.element_id or left.kind != right.kind:
            mismatches.append(
                f"op {index}: {left.element_id} ({left.kind.value}) != {right.element_id} ({right.kind.value})"
            )
            continue
        if left.bbox is None or right.bbox is None:
            if left.bbox != right.bbox:
                side = "preview" if right.bbox is None else "export"
                mismatches.append(f"{left.element_id}: drawn by {side} only")
        elif any(abs(a - b) > tolerance for a, b in zip(left.bbox, right.bbox)):
            mismatches.append(f"{left.element_id}: box {left.bbox} != {right.bbox}")
        if left.detail != right.detail:
            mismatches.append(f"{left.element_id}: '{left.detail}' != '{right.detail}'")
    return mismatches


def check_parity(geometry: ResolvedGeometry, assets: Optional[Assets] = None) -> ParityReport:
    """Render a page on both backends and compare the boxes each one drew.

    Args:
        geometry: Resolved page
        assets: Image bytes by key (``None`` marks an absent image)

    Returns:
        Report listing every mismatch
    """
    assets = assets or {}
    preview = PreviewRenderer(scale=1.0)
    preview.render(geometry, assets)
    export = ExportRenderer()
    export.render(geometry, assets)

    report = ParityReport(
        template=geometry.template,
        preview_ops=len(preview.draw_log),
        export_ops=len(export.draw_log),
        mismatches=compare_draw_logs(preview.draw_log, export.draw_log),
    )
    if not report.ok:
        logger.warning("parity_mismatch", template=geometry.template, mismatches=report.mismatches[:10])
    return report


def measure_drift(
    geometry: ResolvedGeometry, measurer: TextMeasurer, estimator: Optional[TextMeasurer] = None
) -> List[LineDrift]:
    """Lines whose measured width exceeds their text box.

    Args:
        geometry: Resolved page whose text was wrapped with an estimate
        measurer: Real measurer, e.g. ``PillowTextMeasurer``
        estimator: Measurer the lines were wrapped with, reported for comparison

    Returns:
        One entry per overflowing line, in paint order
    """
    drift = []
    for element in geometry.elements:
        if element.kind != ElementKind.TEXT:
            continue
        style = element.style
        for line in element.lines:
            if not line:
                continue
            measured = measurer.width(line, style.font_size, style.bold, style.font_family)
            if measured <= element.w:
                continue
            estimated = estimator.width(line, style.font_size, style.bold, style.font_family) if estimator else 0.0
            drift.append(LineDrift(element.id, line, round(estimated, 2), round(measured, 2), element.w))

    if drift:
        logger.info("measurement_drift", template=geometry.template, lines=len(drift))
    return drift


def drift_summary(drift: List[LineDrift]) -> Tuple[int, float]:
    """(overflowing lines, worst overflow in canvas units)."""
    if not drift:
        return 0, 0.0
    return len(drift), max(entry.measured_width - entry.box_width for entry in drift)
