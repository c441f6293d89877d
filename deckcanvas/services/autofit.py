"""Auto-fit engine and text measurement.

``fit`` shrinks a font size or a uniform scale factor until a caller-supplied
measurement fits a container, stopping at a template-defined minimum. The
measurement is a callable of the candidate value, so the same loop runs against
an analytic estimate (``EstimatedTextMeasurer``) or a real rendering surface.

Every template resolves its fitted values once with the estimating measurer and
records them in the resolved geometry; the preview and export renderers draw
those values and never fit on their own.
"""

import math
import unicodedata
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)

# Decimal places kept after each decrement so repeated float steps stay exact
_STEP_PRECISION = 6


@dataclass
class FitState:
    """Progress of one fit attempt. Never shared between templates or passes."""

    value: float
    iterations: int = 0
    overflow: bool = False


def run_fit(
    measure_height: Callable[[float], float],
    container_height: float,
    start: float,
    step: float,
    minimum: float,
    name: str = "fit",
) -> FitState:
    """Shrink ``start`` by ``step`` until the measured height fits.

    Args:
        measure_height: Height of the content rendered at a candidate value
        container_height: Height available to the content
        start: Default (unshrunk) font size or scale
        step: Decrement applied per iteration
        minimum: Lowest value the loop may reach
        name: Label used in log events

    Returns:
        Final fit state; ``overflow`` is set when content still overflows

    Raises:
        ValueError: If ``step`` is not positive
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    if container_height <= 0:
        return FitState(value=minimum, overflow=True)

    state = FitState(value=start)
    height = measure_height(state.value)
    if height <= 0:
        # Empty content keeps its default
        return state

    while height > container_height and state.value > minimum:
        state.value = max(minimum, round(state.value - step, _STEP_PRECISION))
        state.iterations += 1
        height = measure_height(state.value)

    state.overflow = height > container_height
    if state.overflow:
        logger.debug(
            "autofit_overflow_accepted",
            fit=name,
            value=state.value,
            height=round(height, 2),
            container_height=container_height,
        )
    return state


def fit(
    measure_height: Callable[[float], float],
    container_height: float,
    start: float,
    step: float,
    minimum: float,
    name: str = "fit",
) -> float:
    """Return the fitted font size or scale. See ``run_fit``."""
    return run_fit(measure_height, container_height, start, step, minimum, name=name).value


# === Text measurement ===


class TextMeasurer(Protocol):
    def width(self, text: str, font_size: float, bold: bool = False, family: Optional[str] = None) -> float: ...


def is_wide(char: str) -> bool:
    """Check whether a character occupies a full em (CJK, fullwidth forms)."""
    return unicodedata.east_asian_width(char) in ("W", "F")


class EstimatedTextMeasurer:
    """Analytic width estimate from per-character em fractions.

    Wide characters count one em, latin letters about half an em. The estimate
    ignores kerning and the real font; ``parity.measure_drift`` reports where it
    disagrees with a rendering backend.
    """

    NARROW_CHARS = frozenset("iIjl.,;:!|'`()[]{}")
    SPACE_EM = 0.28
    NARROW_EM = 0.3
    UPPER_EM = 0.64
    DIGIT_EM = 0.56
    LOWER_EM = 0.52
    WIDE_EM = 1.0
    BOLD_FACTOR = 1.05

    def char_em(self, char: str) -> float:
        if char.isspace():
            return self.SPACE_EM
        if is_wide(char):
            return self.WIDE_EM
        if char in self.NARROW_CHARS:
            return self.NARROW_EM
        if char.isupper():
            return self.UPPER_EM
        if char.isdigit():
            return self.DIGIT_EM
        return self.LOWER_EM

    def width(self, text: str, font_size: float, bold: bool = False, family: Optional[str] = None) -> float:
        em = sum(self.char_em(char) for char in text)
        return em * font_size * (self.BOLD_FACTOR if bold else 1.0)


def _tokens(paragraph: str) -> List[str]:
    """Split a paragraph into words, single wide characters and single spaces."""
    tokens = []
    word = ""
    for char in paragraph:
        if char.isspace() or is_wide(char):
            if word:
                tokens.append(word)
                word = ""
            tokens.append(" " if char.isspace() else char)
        else:
            word += char
    if word:
        tokens.append(word)
    return tokens


def wrap_text(
    text: str,
    max_width: float,
    font_size: float,
    measurer: TextMeasurer,
    bold: bool = False,
) -> List[str]:
    """Greedy line breaking shared by both renderers.

    Breaks between words and between wide characters; a single word wider than
    the box is broken between characters. Explicit newlines start a new line and
    blank lines are kept.

    Returns:
        Wrapped lines; empty for empty text
    """
    if not text:
        return []

    def measure(value: str) -> float:
        return measurer.width(value, font_size, bold)

    lines: List[str] = []
    for paragraph in text.split("\n"):
        line = ""
        for token in _tokens(paragraph):
            if token == " ":
                if line:
                    line += " "
                continue

            candidate = line + token
            if measure(candidate.rstrip()) <= max_width:
                line = candidate
                continue

            if line.strip():
                lines.append(line.rstrip())
                line = ""

            if measure(token) <= max_width:
                line = token
                continue

            for char in token:
                if line and measure(line + char) > max_width:
                    lines.append(line)
                    line = ""
                line += char
        lines.append(line.rstrip())
    return lines


def text_block_height(line_count: int, font_size: float, line_height: float) -> float:
    """Height of ``line_count`` lines at a font size and line-height multiplier."""
    return line_count * font_size * line_height


def baseline_offset(font_size: float, line_height: float) -> float:
    """Distance from the top of a line box to its baseline.

    The glyph box is centered in the line box and the baseline sits at 0.8 of
    the font size inside the glyph box. Both renderers place lines with this.
    """
    return (line_height * font_size - font_size) / 2 + 0.8 * font_size


def estimate_line_count(text: str, chars_per_line: int = 80) -> int:
    """Character-count line estimate: each source line takes at least one row."""
    return sum(max(1, math.ceil(len(line) / chars_per_line)) for line in text.split("\n"))
