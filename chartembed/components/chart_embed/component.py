"""
Chart embed component - server-rendered chart delivery as SVG or PNG.

Resolves the rendering mode for a client, the graph pixel size for the
configured component size, and renders delivery bytes.

Invariants:
- I1: After resolution exactly one concrete mode (SVG or PNG) is active
- I2: Resolved pixel sizes are strictly positive
- I3: Explicit graph pixel overrides win over the component size
- I4: Filename suffix is .svg, .svgz (gzip) or .png
"""

from __future__ import annotations

from ._impl import (
    ChartEmbedConfig,
    build_filename,
    embed_type_for,
    is_gzipped,
    mime_type_for,
    render_chart_bytes,
    resolve_mode,
    resolve_pixels,
)
from .models import (
    RenderChartInput,
    RenderChartOutput,
    ResolveDimensionsInput,
    ResolveDimensionsOutput,
    ResolveModeInput,
    ResolveModeOutput,
)
from .ports import ChartRendererPort, ClientCapabilityPort, RulesPort


def build_config(rules: RulesPort | None) -> ChartEmbedConfig:
    """Build chart embed config from rules port."""
    if rules is None:
        return ChartEmbedConfig()

    return ChartEmbedConfig(
        default_width=rules.get_default_width(),
        default_height=rules.get_default_height(),
        svg_aspect_ratio=rules.get_svg_aspect_ratio(),
        gzip_compression=rules.get_gzip_compression(),
        resource_name_prefix=rules.get_resource_name_prefix(),
        height_uses_width_unit=rules.get_height_uses_width_unit(),
    )


def _resolve_dimensions(
    inp: ResolveDimensionsInput | RenderChartInput,
    config: ChartEmbedConfig,
) -> tuple[int, int]:
    height_unit = inp.width.unit if config.height_uses_width_unit else inp.height.unit
    width = resolve_pixels(
        inp.graph_width, inp.width.value, inp.width.unit, config.default_width
    )
    height = resolve_pixels(
        inp.graph_height, inp.height.value, height_unit, config.default_height
    )
    return width, height


# --- Component Entry Points ---


def run_resolve_mode(
    inp: ResolveModeInput,
    *,
    capability: ClientCapabilityPort | None = None,
) -> ResolveModeOutput:
    """
    Resolve the rendering mode for a client.

    Args:
        inp: Input containing configured mode and client info.
        capability: Optional client capability port (SVG support check).

    Returns:
        ResolveModeOutput with concrete mode, embed type and MIME type.
    """
    mode = resolve_mode(inp.mode, inp.client, capability)

    return ResolveModeOutput(
        mode=mode,
        embed_type=embed_type_for(mode),
        mime_type=mime_type_for(mode),
        errors=[],
        success=True,
    )


def run_resolve_dimensions(
    inp: ResolveDimensionsInput,
    *,
    rules: RulesPort | None = None,
) -> ResolveDimensionsOutput:
    """
    Resolve graph pixel dimensions.

    Args:
        inp: Input containing component size and optional pixel overrides.
        rules: Optional rules port for defaults.

    Returns:
        ResolveDimensionsOutput with width and height in pixels.
    """
    config = build_config(rules)
    width, height = _resolve_dimensions(inp, config)

    return ResolveDimensionsOutput(width=width, height=height, errors=[], success=True)


def run_render(
    inp: RenderChartInput,
    *,
    renderer: ChartRendererPort,
    capability: ClientCapabilityPort | None = None,
    rules: RulesPort | None = None,
    base_name: str = "graph",
) -> RenderChartOutput:
    """
    Render a chart once, outside a wrapper's lifecycle.

    Args:
        inp: Input containing chart, mode, size and delivery options.
        renderer: Chart renderer port.
        capability: Optional client capability port for AUTO mode.
        rules: Optional rules port for defaults.
        base_name: Filename without extension.

    Returns:
        RenderChartOutput with bytes and delivery metadata.

    Raises:
        ChartRenderError: If rendering, document construction or encoding fails.
    """
    config = build_config(rules)
    mode = resolve_mode(inp.mode, inp.client, capability)
    width, height = _resolve_dimensions(inp, config)
    gzip_enabled = is_gzipped(mode, inp.gzip)

    data = render_chart_bytes(
        inp.chart,
        renderer,
        mode,
        width,
        height,
        aspect_ratio=inp.svg_aspect_ratio,
        gzip_enabled=gzip_enabled,
    )

    return RenderChartOutput(
        data=data,
        filename=build_filename(base_name, mode, gzip_enabled),
        mime_type=mime_type_for(mode),
        mode=mode,
        width=width,
        height=height,
        content_encoding="gzip" if gzip_enabled else None,
        errors=[],
        success=True,
    )


def run(
    inp: ResolveModeInput | ResolveDimensionsInput | RenderChartInput,
    *,
    renderer: ChartRendererPort | None = None,
    capability: ClientCapabilityPort | None = None,
    rules: RulesPort | None = None,
) -> ResolveModeOutput | ResolveDimensionsOutput | RenderChartOutput:
    """
    Main entry point for the chart embed component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, ResolveModeInput):
        return run_resolve_mode(inp, capability=capability)
    elif isinstance(inp, ResolveDimensionsInput):
        return run_resolve_dimensions(inp, rules=rules)
    elif isinstance(inp, RenderChartInput):
        if renderer is None:
            raise ValueError("Rendering requires a renderer port")
        return run_render(inp, renderer=renderer, capability=capability, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
