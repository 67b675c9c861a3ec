"""
Chart embed component input/output models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# --- Enumerations ---


class RenderingMode(str, Enum):
    """How the chart is delivered to the browser."""

    SVG = "svg"
    PNG = "png"
    AUTO = "auto"


class EmbedType(str, Enum):
    """HTML element used to embed the rendered chart."""

    OBJECT = "object"
    IMAGE = "image"


class SizeUnit(str, Enum):
    """Sizing units understood by the wrapper (symbol as value)."""

    PIXELS = "px"
    POINTS = "pt"
    PICAS = "pc"
    EM = "em"
    EX = "ex"
    MM = "mm"
    CM = "cm"
    INCH = "in"
    PERCENTAGE = "%"
    REM = "rem"

    @classmethod
    def from_symbol(cls, symbol: str) -> SizeUnit:
        """Look up a unit by its CSS symbol (case-insensitive)."""
        normalized = symbol.strip().lower()
        for unit in cls:
            if unit.value == normalized:
                return unit
        raise ValueError(f"Unknown size unit: {symbol!r}")


MIME_SVG = "image/svg+xml"
MIME_PNG = "image/png"

# --- Sizing ---

_DIMENSION_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?|-?\.\d+)\s*(%|[a-zA-Z]*)\s*$")


@dataclass(frozen=True)
class Dimension:
    """A configured component size. Negative value means undefined."""

    value: float
    unit: SizeUnit = SizeUnit.PIXELS

    @property
    def is_undefined(self) -> bool:
        return self.value < 0

    def __str__(self) -> str:
        if self.is_undefined:
            return ""
        number = int(self.value) if float(self.value).is_integer() else self.value
        return f"{number}{self.unit.value}"


UNDEFINED = Dimension(-1.0, SizeUnit.PIXELS)
FULL = Dimension(100.0, SizeUnit.PERCENTAGE)


def parse_dimension(text: str | None) -> Dimension:
    """
    Parse a CSS-like size string ("12cm", "100%", "809px", "809").

    An empty or None value yields an undefined dimension. A missing unit
    means pixels.

    Raises:
        ValueError: If the text is not a number followed by a known unit.
    """
    if text is None or not text.strip():
        return UNDEFINED

    match = _DIMENSION_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size: {text!r}")

    number, symbol = match.groups()
    unit = SizeUnit.from_symbol(symbol) if symbol else SizeUnit.PIXELS
    return Dimension(float(number), unit)


# --- Client ---


@dataclass(frozen=True)
class ClientInfo:
    """What the host framework knows about the requesting browser."""

    user_agent: str = ""
    browser_family: str = "unknown"
    major_version: int = -1


# --- Errors ---


class ChartRenderError(Exception):
    """Rendering, document construction or encoding of a chart failed."""

    def __init__(self, message: str, stage: str = "encode") -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


@dataclass(frozen=True)
class ChartEmbedValidationError:
    """Chart embed validation error."""

    code: str
    message: str
    field: str | None = None


# --- Chart spec ---


@dataclass(frozen=True)
class ChartSpec:
    """Declarative description of a simple chart."""

    type: str = "line"
    title: str | None = None
    x: tuple[Any, ...] = ()
    y: tuple[float, ...] = ()
    xlabel: str | None = None
    ylabel: str | None = None

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> ChartSpec:
        """
        Build from the dict schema:
        {
            "type": "bar" | "line" | "scatter",
            "title": str,
            "data": {"x": list, "y": list},
            "xlabel": str,
            "ylabel": str
        }
        """
        data = spec.get("data") or {}
        return cls(
            type=spec.get("type", "line"),
            title=spec.get("title"),
            x=tuple(data.get("x", [])),
            y=tuple(data.get("y", [])),
            xlabel=spec.get("xlabel"),
            ylabel=spec.get("ylabel"),
        )


# --- Stream ---


@dataclass
class DownloadStream:
    """Bytes handed to the host framework for delivery."""

    data: bytes
    mime_type: str
    filename: str
    parameters: dict[str, str] = field(default_factory=dict)
    cache_time: int = 0

    def get_parameter(self, name: str) -> str | None:
        return self.parameters.get(name)


# --- Input Models ---


@dataclass(frozen=True)
class ResolveModeInput:
    """Input for resolving the rendering mode for a client."""

    mode: RenderingMode
    client: ClientInfo = field(default_factory=ClientInfo)


@dataclass(frozen=True)
class ResolveDimensionsInput:
    """Input for resolving graph pixel dimensions."""

    width: Dimension = UNDEFINED
    height: Dimension = UNDEFINED
    graph_width: int = -1
    graph_height: int = -1


@dataclass(frozen=True)
class RenderChartInput:
    """Input for a one-shot chart render."""

    chart: Any
    mode: RenderingMode
    width: Dimension = UNDEFINED
    height: Dimension = UNDEFINED
    graph_width: int = -1
    graph_height: int = -1
    gzip: bool = False
    svg_aspect_ratio: str = "none"
    client: ClientInfo = field(default_factory=ClientInfo)


# --- Output Models ---


@dataclass(frozen=True)
class ResolveModeOutput:
    """Output containing the concrete rendering mode."""

    mode: RenderingMode
    embed_type: EmbedType
    mime_type: str
    errors: list[ChartEmbedValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ResolveDimensionsOutput:
    """Output containing resolved pixel dimensions."""

    width: int
    height: int
    errors: list[ChartEmbedValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RenderChartOutput:
    """Output containing rendered chart bytes and delivery metadata."""

    data: bytes
    filename: str
    mime_type: str
    mode: RenderingMode
    width: int
    height: int
    content_encoding: str | None = None
    errors: list[ChartEmbedValidationError] = field(default_factory=list)
    success: bool = True
