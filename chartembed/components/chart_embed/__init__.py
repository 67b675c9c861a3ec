"""
Chart embed component - server-rendered charts delivered as SVG or PNG.
"""

from ._impl import (
    CACHE_TIME,
    CSS_DPI,
    DEFAULT_CONFIG,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    ChartEmbedConfig,
    ChartStreamResource,
    ChartWrapper,
    build_filename,
    create_chart_wrapper,
    embed_type_for,
    is_gzipped,
    is_valid_aspect_ratio,
    mime_type_for,
    render_chart_bytes,
    resolve_mode,
    resolve_pixels,
)
from ._svg import finalize_svg
from .component import (
    build_config,
    run,
    run_render,
    run_resolve_dimensions,
    run_resolve_mode,
)
from .models import (
    FULL,
    MIME_PNG,
    MIME_SVG,
    UNDEFINED,
    ChartEmbedValidationError,
    ChartRenderError,
    ChartSpec,
    ClientInfo,
    Dimension,
    DownloadStream,
    EmbedType,
    RenderChartInput,
    RenderChartOutput,
    RenderingMode,
    ResolveDimensionsInput,
    ResolveDimensionsOutput,
    ResolveModeInput,
    ResolveModeOutput,
    SizeUnit,
    parse_dimension,
)
from .ports import (
    ChartPort,
    ChartRendererPort,
    ClientCapabilityPort,
    ClockPort,
    RulesPort,
)

__all__ = [
    # Entry points
    "build_config",
    "run",
    "run_render",
    "run_resolve_dimensions",
    "run_resolve_mode",
    # Input models
    "RenderChartInput",
    "ResolveDimensionsInput",
    "ResolveModeInput",
    # Output models
    "RenderChartOutput",
    "ResolveDimensionsOutput",
    "ResolveModeOutput",
    "ChartEmbedValidationError",
    # Domain models
    "ChartRenderError",
    "ChartSpec",
    "ClientInfo",
    "Dimension",
    "DownloadStream",
    "EmbedType",
    "RenderingMode",
    "SizeUnit",
    "FULL",
    "UNDEFINED",
    "MIME_PNG",
    "MIME_SVG",
    "parse_dimension",
    # Ports
    "ChartPort",
    "ChartRendererPort",
    "ClientCapabilityPort",
    "ClockPort",
    "RulesPort",
    # _impl
    "CACHE_TIME",
    "CSS_DPI",
    "DEFAULT_CONFIG",
    "DEFAULT_HEIGHT",
    "DEFAULT_WIDTH",
    "ChartEmbedConfig",
    "ChartStreamResource",
    "ChartWrapper",
    "build_filename",
    "create_chart_wrapper",
    "embed_type_for",
    "finalize_svg",
    "is_gzipped",
    "is_valid_aspect_ratio",
    "mime_type_for",
    "render_chart_bytes",
    "resolve_mode",
    "resolve_pixels",
]
