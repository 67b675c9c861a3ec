"""
ChartWrapper - embeds a server-rendered chart as SVG or PNG.

Key behaviors:
- AUTO mode resolves once per attach from client capability (legacy
  browsers get PNG, everything else SVG)
- Graph pixel size follows the component size at 96 dpi unless explicitly
  overridden; relative or undefined sizes fall back to 809x500
- Every stream fetch renders fresh bytes; marking the wrapper dirty drops
  the cached resource descriptor
- SVG output may be gzip-compressed (.svgz, Content-Encoding: gzip)
- Rendering failures raise ChartRenderError, they are never swallowed
"""

from __future__ import annotations

import gzip
import html
import logging
import math
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ._svg import finalize_svg
from .models import (
    MIME_PNG,
    MIME_SVG,
    ChartRenderError,
    ClientInfo,
    Dimension,
    DownloadStream,
    EmbedType,
    RenderingMode,
    SizeUnit,
    parse_dimension,
)
from .ports import ChartRendererPort, ClientCapabilityPort, ClockPort

logger = logging.getLogger(__name__)

# 809x500 ~ golden ratio
DEFAULT_WIDTH = 809
DEFAULT_HEIGHT = 500

CSS_DPI = 96
CM_PER_INCH = 2.54

# Rendered charts must never be cached by intermediate layers
CACHE_TIME = 0

CONTENT_ENCODING = "Content-Encoding"


# --- Configuration ---


@dataclass(frozen=True)
class ChartEmbedConfig:
    """Chart embed configuration from rules."""

    default_width: int = DEFAULT_WIDTH
    default_height: int = DEFAULT_HEIGHT
    svg_aspect_ratio: str = "none"  # stretch to fill whole space
    gzip_compression: bool = False
    resource_name_prefix: str = "graph"

    # Legacy behavior converted height with the width unit
    height_uses_width_unit: bool = False


DEFAULT_CONFIG = ChartEmbedConfig()

_ALIGN_VALUES = {
    "none",
    "xMinYMin",
    "xMidYMin",
    "xMaxYMin",
    "xMinYMid",
    "xMidYMid",
    "xMaxYMid",
    "xMinYMax",
    "xMidYMax",
    "xMaxYMax",
}


def is_valid_aspect_ratio(value: str) -> bool:
    """Check an SVG preserveAspectRatio value ("<align> [meet|slice]")."""
    parts = value.split()
    if not parts or len(parts) > 2:
        return False
    if parts[0] not in _ALIGN_VALUES:
        return False
    return len(parts) == 1 or parts[1] in ("meet", "slice")


# --- Mode Selection ---


def resolve_mode(
    mode: RenderingMode,
    client: ClientInfo,
    capability: ClientCapabilityPort | None,
) -> RenderingMode:
    """
    Resolve AUTO to a concrete mode for the client.

    Without a capability port every client is taken to support SVG.
    """
    if mode != RenderingMode.AUTO:
        return mode
    if capability is not None and not capability.supports_vector(client):
        return RenderingMode.PNG
    return RenderingMode.SVG


def mime_type_for(mode: RenderingMode) -> str:
    return MIME_PNG if mode == RenderingMode.PNG else MIME_SVG


def embed_type_for(mode: RenderingMode) -> EmbedType:
    return EmbedType.IMAGE if mode == RenderingMode.PNG else EmbedType.OBJECT


def is_gzipped(mode: RenderingMode, gzip_enabled: bool) -> bool:
    """PNG output is never compressed, whatever the gzip setting."""
    return gzip_enabled and mode != RenderingMode.PNG


def build_filename(base_name: str, mode: RenderingMode, gzip_enabled: bool) -> str:
    if mode == RenderingMode.PNG:
        return f"{base_name}.png"
    return f"{base_name}.svgz" if gzip_enabled else f"{base_name}.svg"


# --- Dimension Resolution ---


def _truncate(value: float) -> int:
    # Rounding first keeps 2.54cm at exactly 96px despite float noise
    return int(round(value, 6))


def resolve_pixels(
    explicit_override: int,
    size: float,
    unit: SizeUnit,
    default: int,
) -> int:
    """
    Convert a configured size to graph pixels.

    Precedence:
    1. Explicit override (> 0)
    2. Default when size is undefined (< 0) or relative (percentage)
    3. Unit conversion at 96 dpi: cm, inch; anything else is pixels

    Never returns a non-positive value. Non-finite sizes (inf, NaN, or a
    conversion that overflows) fall back to the default.
    """
    if explicit_override > 0:
        return explicit_override
    if not math.isfinite(size) or size < 0:
        return default

    if unit == SizeUnit.CM:
        scaled = size * CSS_DPI / CM_PER_INCH
    elif unit == SizeUnit.INCH:
        scaled = size * CSS_DPI
    elif unit == SizeUnit.PERCENTAGE:
        return default
    else:
        scaled = size

    if not math.isfinite(scaled):
        return default

    pixels = _truncate(scaled)
    if pixels <= 0:
        return default
    return pixels


# --- Stream Production ---


def _call_renderer(
    renderer: ChartRendererPort,
    chart: Any,
    mode: RenderingMode,
    width: int,
    height: int,
) -> bytes:
    try:
        if mode == RenderingMode.SVG:
            return renderer.render_svg(chart, width, height)
        return renderer.render_png(chart, width, height)
    except ChartRenderError:
        raise
    except Exception as e:
        logger.exception("Chart rendering failed (%s, %dx%d)", mode.value, width, height)
        raise ChartRenderError(f"Chart rendering failed: {e}", stage="draw") from e


def render_chart_bytes(
    chart: Any,
    renderer: ChartRendererPort,
    mode: RenderingMode,
    width: int,
    height: int,
    *,
    aspect_ratio: str = "none",
    gzip_enabled: bool = False,
) -> bytes:
    """
    Render a chart to delivery bytes.

    Raises:
        ChartRenderError: If the mode is unresolved or any stage fails.
    """
    if mode == RenderingMode.AUTO:
        raise ChartRenderError("Rendering mode is unresolved; attach first", stage="mode")

    raw = _call_renderer(renderer, chart, mode, width, height)
    if mode == RenderingMode.PNG:
        return raw

    try:
        document = finalize_svg(raw, width, height, aspect_ratio)
    except ChartRenderError:
        logger.exception("SVG document construction failed")
        raise

    if not gzip_enabled:
        return document

    try:
        return gzip.compress(document)
    except OSError as e:
        logger.exception("SVG compression failed")
        raise ChartRenderError(f"SVG compression failed: {e}", stage="encode") from e


class ChartStreamResource:
    """
    Resource descriptor handed to the host framework.

    Filename and MIME type follow the wrapper's current mode; every call
    to get_stream() renders again.
    """

    def __init__(self, wrapper: ChartWrapper, base_name: str) -> None:
        self._wrapper = wrapper
        self._base_name = base_name
        self._last_size = 0

    @property
    def base_name(self) -> str:
        return self._base_name

    def get_filename(self) -> str:
        return build_filename(
            self._base_name,
            self._wrapper.rendering_mode,
            self._wrapper.is_gzip_compression(),
        )

    def get_mime_type(self) -> str:
        return mime_type_for(self._wrapper.rendering_mode)

    def get_cache_time(self) -> int:
        return CACHE_TIME

    def get_buffer_size(self) -> int:
        """Bytes of the most recent stream; 0 before the first fetch."""
        return self._last_size

    def get_stream(self) -> DownloadStream:
        # One snapshot of mode and compression for bytes and metadata alike
        mode = self._wrapper.rendering_mode
        gzip_enabled = is_gzipped(mode, self._wrapper.is_gzip_compression())
        data = self._wrapper.render(mode, gzip_enabled=gzip_enabled)
        self._last_size = len(data)

        parameters: dict[str, str] = {}
        if gzip_enabled:
            parameters[CONTENT_ENCODING] = "gzip"

        return DownloadStream(
            data=data,
            mime_type=mime_type_for(mode),
            filename=build_filename(self._base_name, mode, gzip_enabled),
            parameters=parameters,
            cache_time=CACHE_TIME,
        )


# --- Wrapper ---


class ChartWrapper:
    """
    Embeddable chart component.

    Holds the chart, sizing and delivery options. The host framework calls
    attach() with the client it serves, then fetches bytes through the
    resource from get_source().
    """

    def __init__(
        self,
        chart: Any,
        rendering_mode: RenderingMode = RenderingMode.AUTO,
        *,
        renderer: ChartRendererPort,
        capability: ClientCapabilityPort | None = None,
        config: ChartEmbedConfig = DEFAULT_CONFIG,
        clock: ClockPort | None = None,
    ) -> None:
        self._chart = chart
        self._renderer = renderer
        self._capability = capability
        self._config = config
        self._clock = clock

        self._gzip_enabled = config.gzip_compression
        self._graph_width = -1
        self._graph_height = -1
        self._aspect_ratio = config.svg_aspect_ratio
        self._width = Dimension(float(config.default_width), SizeUnit.PIXELS)
        self._height = Dimension(float(config.default_height), SizeUnit.PIXELS)

        self._attached = False
        self._client = ClientInfo()
        self._resource: ChartStreamResource | None = None
        self._resource_lock = threading.Lock()

        self._mode = RenderingMode.AUTO
        self._embed_type = EmbedType.OBJECT
        self._mime_type = MIME_SVG
        self._apply_mode(rendering_mode)

    # --- Properties ---

    @property
    def chart(self) -> Any:
        return self._chart

    @property
    def config(self) -> ChartEmbedConfig:
        return self._config

    @property
    def rendering_mode(self) -> RenderingMode:
        return self._mode

    @property
    def embed_type(self) -> EmbedType:
        return self._embed_type

    @property
    def mime_type(self) -> str:
        return self._mime_type

    @property
    def is_attached(self) -> bool:
        return self._attached

    @property
    def client(self) -> ClientInfo:
        return self._client

    # --- Mode ---

    def _apply_mode(self, mode: RenderingMode) -> None:
        self._embed_type = embed_type_for(mode)
        self._mime_type = mime_type_for(mode)
        self._mode = mode

    def _resolve_mode(self) -> None:
        resolved = resolve_mode(self._mode, self._client, self._capability)
        logger.info(
            "Resolved rendering mode %s for %s %s",
            resolved.value,
            self._client.browser_family,
            self._client.major_version,
        )
        self._apply_mode(resolved)

    def set_rendering_mode(self, mode: RenderingMode) -> None:
        """
        Reassign the rendering mode.

        AUTO re-enters resolution: immediately when attached, otherwise on
        the next attach.
        """
        self._apply_mode(mode)
        if mode == RenderingMode.AUTO and self._attached:
            self._resolve_mode()
        self.mark_as_dirty()

    # --- Lifecycle ---

    def attach(self, client: ClientInfo | None = None) -> RenderingMode:
        """Bind to a client; resolves AUTO mode once."""
        self._attached = True
        if client is not None:
            self._client = client
        if self._mode == RenderingMode.AUTO:
            self._resolve_mode()
        self.get_source()
        return self._mode

    def detach(self) -> None:
        self._attached = False

    def mark_as_dirty(self) -> None:
        """Drop the cached resource so the next fetch rebuilds it."""
        with self._resource_lock:
            self._resource = None
        logger.debug("Chart wrapper marked dirty")

    # --- Options ---

    def set_gzip_compression(self, compress: bool) -> None:
        """
        Compress SVG charts in the wrapper. Useful when the server does not
        compress responses itself. PNG output is unaffected.
        """
        self._gzip_enabled = compress
        self.mark_as_dirty()

    def is_gzip_compression(self) -> bool:
        return self._gzip_enabled

    def get_svg_aspect_ratio(self) -> str:
        return self._aspect_ratio

    def set_svg_aspect_ratio(self, aspect_ratio: str) -> None:
        """
        Set the SVG preserveAspectRatio value. Default is "none" (stretch);
        "xMidYMid" keeps proportions and centers the chart.
        """
        self._aspect_ratio = aspect_ratio
        self.mark_as_dirty()

    # --- Sizing ---

    def set_width(self, width: float | str, unit: SizeUnit = SizeUnit.PIXELS) -> None:
        if isinstance(width, str):
            self._width = parse_dimension(width)
        else:
            self._width = Dimension(float(width), unit)
        self.mark_as_dirty()

    def set_height(self, height: float | str, unit: SizeUnit = SizeUnit.PIXELS) -> None:
        if isinstance(height, str):
            self._height = parse_dimension(height)
        else:
            self._height = Dimension(float(height), unit)
        self.mark_as_dirty()

    def get_width(self) -> Dimension:
        return self._width

    def get_height(self) -> Dimension:
        return self._height

    def set_size_full(self) -> None:
        self.set_width(100, SizeUnit.PERCENTAGE)
        self.set_height(100, SizeUnit.PERCENTAGE)

    def set_size_undefined(self) -> None:
        self.set_width(-1)
        self.set_height(-1)

    def set_graph_width(self, width: int) -> None:
        """
        Set the pixel width of the area the graph is rendered into. Mostly
        needed when the wrapper has a relative size.
        """
        self._graph_width = width
        self.mark_as_dirty()

    def set_graph_height(self, height: int) -> None:
        """Pixel height counterpart of set_graph_width()."""
        self._graph_height = height
        self.mark_as_dirty()

    def get_graph_width(self) -> int:
        """
        Pixel width the graph is rendered into. Derived from the component
        size unless set explicitly, except for relative sizes.
        """
        return resolve_pixels(
            self._graph_width,
            self._width.value,
            self._width.unit,
            self._config.default_width,
        )

    def get_graph_height(self) -> int:
        unit = self._width.unit if self._config.height_uses_width_unit else self._height.unit
        return resolve_pixels(
            self._graph_height,
            self._height.value,
            unit,
            self._config.default_height,
        )

    # --- Resource ---

    def _new_base_name(self) -> str:
        now = self._clock.now_utc() if self._clock else datetime.now(UTC)
        return f"{self._config.resource_name_prefix}{int(now.timestamp() * 1000)}"

    def get_source(self) -> ChartStreamResource:
        """Return the resource descriptor, building it if dirty."""
        with self._resource_lock:
            if self._resource is None:
                self._resource = ChartStreamResource(self, self._new_base_name())
            return self._resource

    def render(
        self,
        mode: RenderingMode | None = None,
        *,
        gzip_enabled: bool | None = None,
    ) -> bytes:
        """Render the chart with current size and options; mode and gzip default to current."""
        if mode is None:
            mode = self._mode
        if gzip_enabled is None:
            gzip_enabled = is_gzipped(mode, self._gzip_enabled)
        return render_chart_bytes(
            self._chart,
            self._renderer,
            mode,
            self.get_graph_width(),
            self.get_graph_height(),
            aspect_ratio=self._aspect_ratio,
            gzip_enabled=gzip_enabled,
        )

    def embed_html(self, src: str) -> str:
        """HTML element embedding the resource at src."""
        style = ";".join(
            f"{name}:{dim}"
            for name, dim in (("width", self._width), ("height", self._height))
            if not dim.is_undefined
        )
        style_attr = f' style="{html.escape(style)}"' if style else ""
        safe_src = html.escape(src, quote=True)

        if self._embed_type == EmbedType.IMAGE:
            return f'<img src="{safe_src}" alt=""{style_attr}>'
        return f'<object type="{self._mime_type}" data="{safe_src}"{style_attr}></object>'


def create_chart_wrapper(
    chart: Any,
    renderer: ChartRendererPort,
    rendering_mode: RenderingMode = RenderingMode.AUTO,
    capability: ClientCapabilityPort | None = None,
    config: ChartEmbedConfig | None = None,
    clock: ClockPort | None = None,
) -> ChartWrapper:
    """Factory function to create a ChartWrapper."""
    return ChartWrapper(
        chart,
        rendering_mode,
        renderer=renderer,
        capability=capability,
        config=config or DEFAULT_CONFIG,
        clock=clock,
    )
