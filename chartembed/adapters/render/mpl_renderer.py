import logging
from io import BytesIO
from typing import Any

import matplotlib.figure
from matplotlib.backends.backend_agg import FigureCanvasAgg

from chartembed.components.chart_embed.models import ChartSpec
from chartembed.components.chart_embed.ports import ChartPort

logger = logging.getLogger(__name__)

SUPPORTED_CHART_TYPES = ("bar", "line", "scatter")


class SpecChart:
    """Chart drawn from a declarative ChartSpec."""

    def __init__(self, spec: ChartSpec):
        if spec.type not in SUPPORTED_CHART_TYPES:
            raise ValueError(f"Unsupported chart type: {spec.type}")
        if len(spec.x) != len(spec.y):
            raise ValueError("Chart data x and y must have the same length")
        self.spec = spec

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> "SpecChart":
        return cls(ChartSpec.from_dict(spec))

    def draw(self, figure: matplotlib.figure.Figure) -> None:
        ax = figure.add_subplot(111)
        x = list(self.spec.x)
        y = list(self.spec.y)

        if self.spec.type == "bar":
            ax.bar(x, y)
        elif self.spec.type == "scatter":
            ax.scatter(x, y)
        else:  # line
            ax.plot(x, y)

        if title := self.spec.title:
            ax.set_title(title)
        if xlabel := self.spec.xlabel:
            ax.set_xlabel(xlabel)
        if ylabel := self.spec.ylabel:
            ax.set_ylabel(ylabel)

        figure.tight_layout()


class MatplotlibChartRenderer:
    """
    Renders charts onto a fresh Figure sized to the requested pixels.

    The chart object is never mutated; every call builds a new Figure.
    """

    def __init__(self, dpi: int = 96):
        if dpi <= 0:
            raise ValueError("dpi must be positive")
        self.dpi = dpi

    def _build_figure(self, chart: ChartPort, width: int, height: int) -> matplotlib.figure.Figure:
        fig = matplotlib.figure.Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)
        FigureCanvasAgg(fig)  # Attach canvas backend
        chart.draw(fig)
        return fig

    def _save(self, fig: matplotlib.figure.Figure, fmt: str, **kwargs: Any) -> bytes:
        buf = BytesIO()
        fig.savefig(buf, format=fmt, dpi=self.dpi, **kwargs)
        data = buf.getvalue()
        buf.close()
        return data

    def render_svg(self, chart: ChartPort, width: int, height: int) -> bytes:
        fig = self._build_figure(chart, width, height)
        # No date metadata so identical charts give identical documents
        data = self._save(fig, "svg", metadata={"Date": None})
        logger.debug("Rendered SVG chart %dx%d (%d bytes)", width, height, len(data))
        return data

    def render_png(self, chart: ChartPort, width: int, height: int) -> bytes:
        fig = self._build_figure(chart, width, height)
        data = self._save(fig, "png")
        logger.debug("Rendered PNG chart %dx%d (%d bytes)", width, height, len(data))
        return data
