"""
Chart embed component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from .models import ClientInfo


class ChartPort(Protocol):
    """A renderable chart. Draws itself onto a fresh matplotlib Figure."""

    def draw(self, figure: Any) -> None:
        """Draw the chart onto the given figure."""
        ...


class ChartRendererPort(Protocol):
    """Turns a chart into encoded image bytes of an exact pixel size."""

    def render_svg(self, chart: ChartPort, width: int, height: int) -> bytes:
        """Render the chart as an SVG document (UTF-8)."""
        ...

    def render_png(self, chart: ChartPort, width: int, height: int) -> bytes:
        """Rasterize the chart to PNG bytes."""
        ...


class ClientCapabilityPort(Protocol):
    """Answers whether a client can display SVG."""

    def supports_vector(self, client: ClientInfo) -> bool:
        """Return True if the client renders SVG."""
        ...


class ClockPort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


class RulesPort(Protocol):
    """Port for chart embed rules configuration."""

    def get_default_width(self) -> int:
        """Fallback graph width in pixels."""
        ...

    def get_default_height(self) -> int:
        """Fallback graph height in pixels."""
        ...

    def get_svg_aspect_ratio(self) -> str:
        """Default preserveAspectRatio value."""
        ...

    def get_gzip_compression(self) -> bool:
        """Whether SVG output is gzip-compressed by default."""
        ...

    def get_resource_name_prefix(self) -> str:
        """Base name prefix of generated resource filenames."""
        ...

    def get_height_uses_width_unit(self) -> bool:
        """Whether height conversion reads the width unit."""
        ...
