"""
Chart Embed Routes - registers charts and serves their rendered bytes.

Key behaviors:
- Embedding attaches the wrapper to the requesting client (User-Agent),
  resolving AUTO mode once
- Resource bytes are rendered on every fetch and never cached
- svgz responses carry Content-Encoding: gzip
- Render failures surface as 500 with the failing stage

Headers:
- Cache-Control / Pragma / Expires: no caching (cache time is always 0)
- Content-Disposition: inline (default) or attachment (?download=1)
- Content-Encoding: gzip for compressed SVG
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from chartembed.adapters.chart_registry import InMemoryChartRegistry
from chartembed.adapters.client.user_agent import UserAgentCapability, parse_user_agent
from chartembed.adapters.render.mpl_renderer import MatplotlibChartRenderer, SpecChart
from chartembed.api.deps import get_capability, get_chart_registry, get_renderer, get_rules
from chartembed.api.schemas import ChartCreateRequest, ChartCreateResponse, ChartEmbedResponse
from chartembed.components.chart_embed import (
    ChartRenderError,
    ChartSpec,
    ChartWrapper,
    ClientInfo,
    DownloadStream,
    build_config,
    create_chart_wrapper,
    is_valid_aspect_ratio,
)
from chartembed.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Constants ---

CACHE_CONTROL_NO_CACHE = "no-cache, no-store, max-age=0"


# --- Helper Functions ---


def client_from_request(request: Request) -> ClientInfo:
    return parse_user_agent(request.headers.get("user-agent"))


def build_content_disposition(filename: str, download: bool = False) -> str:
    """
    Build Content-Disposition header.

    - inline: Display in browser (default)
    - attachment: Prompt download (?download=1)
    """
    safe_filename = filename.replace('"', '\\"').replace("\n", "_")

    if download:
        return f'attachment; filename="{safe_filename}"'
    return f'inline; filename="{safe_filename}"'


def build_cache_control(cache_time: int) -> str:
    if cache_time <= 0:
        return CACHE_CONTROL_NO_CACHE
    return f"max-age={cache_time}"


def build_stream_headers(stream: DownloadStream, download: bool = False) -> dict[str, str]:
    """Response headers for a download stream."""
    headers = {
        "Cache-Control": build_cache_control(stream.cache_time),
        "Content-Disposition": build_content_disposition(stream.filename, download=download),
        "Content-Length": str(len(stream.data)),
    }
    if stream.cache_time <= 0:
        headers["Pragma"] = "no-cache"
        headers["Expires"] = "0"
    headers.update(stream.parameters)
    return headers


def _get_wrapper(chart_id: UUID, registry: InMemoryChartRegistry) -> ChartWrapper:
    wrapper = registry.get(chart_id)
    if wrapper is None:
        raise HTTPException(status_code=404, detail="Chart not found")
    return wrapper


def _build_wrapper(
    payload: ChartCreateRequest,
    rules: Rules,
    renderer: MatplotlibChartRenderer,
    capability: UserAgentCapability,
) -> ChartWrapper:
    spec = ChartSpec(
        type=payload.spec.type,
        title=payload.spec.title,
        x=tuple(payload.spec.data.x),
        y=tuple(payload.spec.data.y),
        xlabel=payload.spec.xlabel,
        ylabel=payload.spec.ylabel,
    )
    wrapper = create_chart_wrapper(
        SpecChart(spec),
        renderer,
        rendering_mode=payload.mode,
        capability=capability,
        config=build_config(rules.chart_embed),
    )

    if payload.gzip is not None:
        wrapper.set_gzip_compression(payload.gzip)
    if payload.width is not None:
        wrapper.set_width(payload.width)
    if payload.height is not None:
        wrapper.set_height(payload.height)
    if payload.graph_width is not None:
        wrapper.set_graph_width(payload.graph_width)
    if payload.graph_height is not None:
        wrapper.set_graph_height(payload.graph_height)
    if payload.svg_aspect_ratio is not None:
        if not is_valid_aspect_ratio(payload.svg_aspect_ratio):
            raise ValueError(f"Invalid svg_aspect_ratio: {payload.svg_aspect_ratio!r}")
        wrapper.set_svg_aspect_ratio(payload.svg_aspect_ratio)

    return wrapper


# --- Endpoints ---


@router.post(
    "",
    response_model=ChartCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a chart",
)
def create_chart(
    payload: ChartCreateRequest,
    rules: Rules = Depends(get_rules),
    renderer: MatplotlibChartRenderer = Depends(get_renderer),
    capability: UserAgentCapability = Depends(get_capability),
    registry: InMemoryChartRegistry = Depends(get_chart_registry),
) -> ChartCreateResponse:
    try:
        wrapper = _build_wrapper(payload, rules, renderer, capability)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    chart_id = registry.add(wrapper)
    logger.info("Registered chart %s (mode %s)", chart_id, wrapper.rendering_mode.value)
    return ChartCreateResponse(id=chart_id)


@router.get(
    "/{chart_id}/embed",
    response_model=ChartEmbedResponse,
    summary="Attach a chart to the requesting client",
)
def embed_chart(
    request: Request,
    chart_id: UUID,
    registry: InMemoryChartRegistry = Depends(get_chart_registry),
) -> ChartEmbedResponse:
    wrapper = _get_wrapper(chart_id, registry)
    wrapper.attach(client_from_request(request))

    resource = wrapper.get_source()
    src = str(request.url_for("get_chart_resource", chart_id=str(chart_id)))

    return ChartEmbedResponse(
        id=chart_id,
        mode=wrapper.rendering_mode,
        embed_type=wrapper.embed_type,
        mime_type=wrapper.mime_type,
        filename=resource.get_filename(),
        src=src,
        html=wrapper.embed_html(src),
        graph_width=wrapper.get_graph_width(),
        graph_height=wrapper.get_graph_height(),
    )


@router.get(
    "/{chart_id}/resource",
    summary="Get rendered chart bytes",
    responses={
        200: {
            "description": "Rendered SVG, SVGZ or PNG",
            "headers": {
                "Cache-Control": {"description": "Never cached"},
                "Content-Disposition": {"description": "Inline or attachment"},
                "Content-Encoding": {"description": "gzip for compressed SVG"},
            },
        },
        404: {"description": "Chart not found"},
        500: {"description": "Rendering failed"},
    },
)
def get_chart_resource(
    request: Request,
    chart_id: UUID,
    download: bool = Query(False, description="Trigger download"),
    registry: InMemoryChartRegistry = Depends(get_chart_registry),
) -> Response:
    wrapper = _get_wrapper(chart_id, registry)
    if not wrapper.is_attached:
        wrapper.attach(client_from_request(request))

    try:
        stream = wrapper.get_source().get_stream()
    except ChartRenderError as e:
        raise HTTPException(
            status_code=500,
            detail={"code": "render_failed", "stage": e.stage, "message": e.message},
        ) from e

    return Response(
        content=stream.data,
        media_type=stream.mime_type,
        headers=build_stream_headers(stream, download=download),
    )


@router.delete(
    "/{chart_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Drop a chart",
)
def delete_chart(
    chart_id: UUID,
    registry: InMemoryChartRegistry = Depends(get_chart_registry),
) -> Response:
    wrapper = registry.remove(chart_id)
    if wrapper is None:
        raise HTTPException(status_code=404, detail="Chart not found")
    wrapper.detach()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
