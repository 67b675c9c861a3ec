"""
Tests for Chart Embed Routes.

Test assertions:
- Charts register, attach to the requesting client and serve bytes
- Legacy IE gets PNG, modern browsers SVG
- Compressed SVG carries Content-Encoding: gzip
- Responses are never cached
- Render failures surface as 500 with the failing stage
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chartembed.adapters.chart_registry import InMemoryChartRegistry
from chartembed.api.deps import get_chart_registry, get_renderer, get_rules
from chartembed.api.routes import charts
from chartembed.api.routes.charts import (
    build_cache_control,
    build_content_disposition,
    build_stream_headers,
)
from chartembed.components.chart_embed import DownloadStream
from chartembed.rules.models import ChartEmbedRules, Rules
from tests.fakes import CHROME_UA, IE8_UA, PNG_SIGNATURE, FakeRenderer

SPEC: dict[str, Any] = {
    "type": "line",
    "title": "Visits",
    "data": {"x": [1, 2, 3], "y": [10, 20, 15]},
}

# --- Test Setup ---


@pytest.fixture
def registry() -> InMemoryChartRegistry:
    return InMemoryChartRegistry()


@pytest.fixture
def rules() -> Rules:
    return Rules()


@pytest.fixture
def app(
    registry: InMemoryChartRegistry, fake_renderer: FakeRenderer, rules: Rules
) -> FastAPI:
    """Test FastAPI app with chart routes and fake rendering."""
    app = FastAPI()
    app.include_router(charts.router, prefix="/api/charts")
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_renderer] = lambda: fake_renderer
    app.dependency_overrides[get_chart_registry] = lambda: registry
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def create_chart(client: TestClient, **options: Any) -> str:
    response = client.post("/api/charts", json={"spec": SPEC, **options})
    assert response.status_code == 201, response.text
    return response.json()["id"]


# --- Header Helper Tests ---


class TestHeaderHelpers:
    """Test response header construction."""

    def test_inline_disposition(self) -> None:
        assert build_content_disposition("graph1.svg") == 'inline; filename="graph1.svg"'

    def test_attachment_disposition(self) -> None:
        assert build_content_disposition("a.png", download=True) == (
            'attachment; filename="a.png"'
        )

    def test_disposition_escapes_quotes(self) -> None:
        assert build_content_disposition('a"b.svg') == 'inline; filename="a\\"b.svg"'

    def test_cache_control_zero_is_no_cache(self) -> None:
        assert build_cache_control(0) == "no-cache, no-store, max-age=0"

    def test_cache_control_positive(self) -> None:
        assert build_cache_control(60) == "max-age=60"

    def test_stream_headers_include_parameters(self) -> None:
        stream = DownloadStream(
            data=b"\x1f\x8b",
            mime_type="image/svg+xml",
            filename="g.svgz",
            parameters={"Content-Encoding": "gzip"},
        )
        headers = build_stream_headers(stream)

        assert headers["Content-Encoding"] == "gzip"
        assert headers["Content-Length"] == "2"
        assert headers["Pragma"] == "no-cache"
        assert headers["Expires"] == "0"


# --- Create ---


class TestCreateChart:
    def test_create_returns_id(self, client: TestClient, registry: InMemoryChartRegistry) -> None:
        chart_id = create_chart(client)
        assert chart_id
        assert len(registry) == 1

    def test_unsupported_type_rejected(self, client: TestClient) -> None:
        response = client.post("/api/charts", json={"spec": {**SPEC, "type": "pie"}})
        assert response.status_code == 422

    def test_mismatched_data_rejected(self, client: TestClient) -> None:
        spec = {"type": "bar", "data": {"x": [1, 2], "y": [1]}}
        response = client.post("/api/charts", json={"spec": spec})
        assert response.status_code == 422
        assert "same length" in response.json()["detail"]

    def test_invalid_size_rejected(self, client: TestClient) -> None:
        response = client.post("/api/charts", json={"spec": SPEC, "width": "wide"})
        assert response.status_code == 422

    def test_invalid_aspect_ratio_rejected(self, client: TestClient) -> None:
        response = client.post("/api/charts", json={"spec": SPEC, "svg_aspect_ratio": "fit"})
        assert response.status_code == 422

    def test_non_positive_graph_width_rejected(self, client: TestClient) -> None:
        response = client.post("/api/charts", json={"spec": SPEC, "graph_width": 0})
        assert response.status_code == 422


# --- Embed ---


class TestEmbedChart:
    def test_modern_browser_gets_svg(self, client: TestClient) -> None:
        chart_id = create_chart(client)
        response = client.get(f"/api/charts/{chart_id}/embed", headers={"User-Agent": CHROME_UA})

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "svg"
        assert data["embed_type"] == "object"
        assert data["mime_type"] == "image/svg+xml"
        assert data["filename"].endswith(".svg")
        assert data["src"].endswith(f"/api/charts/{chart_id}/resource")
        assert data["html"].startswith('<object type="image/svg+xml"')
        assert (data["graph_width"], data["graph_height"]) == (809, 500)

    def test_legacy_browser_gets_png(self, client: TestClient) -> None:
        chart_id = create_chart(client, gzip=True)
        response = client.get(f"/api/charts/{chart_id}/embed", headers={"User-Agent": IE8_UA})

        data = response.json()
        assert data["mode"] == "png"
        assert data["embed_type"] == "image"
        assert data["mime_type"] == "image/png"
        assert data["filename"].endswith(".png")
        assert data["html"].startswith("<img ")

    def test_explicit_mode_kept(self, client: TestClient) -> None:
        chart_id = create_chart(client, mode="svg")
        response = client.get(f"/api/charts/{chart_id}/embed", headers={"User-Agent": IE8_UA})
        assert response.json()["mode"] == "svg"

    def test_sizes_resolved(self, client: TestClient) -> None:
        chart_id = create_chart(client, width="96in", height="2.54cm")
        data = client.get(f"/api/charts/{chart_id}/embed").json()
        assert (data["graph_width"], data["graph_height"]) == (9216, 96)

    def test_overflowing_size_uses_default(self, client: TestClient) -> None:
        chart_id = create_chart(client, width="1" + "0" * 400 + "px")
        response = client.get(f"/api/charts/{chart_id}/embed")

        assert response.status_code == 200
        assert response.json()["graph_width"] == 809

    def test_graph_override(self, client: TestClient) -> None:
        chart_id = create_chart(client, width="100%", graph_width=1000, graph_height=400)
        data = client.get(f"/api/charts/{chart_id}/embed").json()
        assert (data["graph_width"], data["graph_height"]) == (1000, 400)

    def test_unknown_chart(self, client: TestClient) -> None:
        response = client.get(f"/api/charts/{uuid4()}/embed")
        assert response.status_code == 404


# --- Resource ---


class TestChartResource:
    def test_svg_resource(self, client: TestClient) -> None:
        chart_id = create_chart(client)
        response = client.get(
            f"/api/charts/{chart_id}/resource", headers={"User-Agent": CHROME_UA}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert response.headers["cache-control"] == "no-cache, no-store, max-age=0"
        assert response.headers["content-disposition"].startswith("inline;")
        assert "content-encoding" not in response.headers
        root = ET.fromstring(response.content)
        assert root.get("viewBox") == "0 0 809 500"
        assert root.get("preserveAspectRatio") == "none"

    def test_gzip_resource(self, client: TestClient) -> None:
        chart_id = create_chart(client, gzip=True, svg_aspect_ratio="xMidYMid")
        response = client.get(
            f"/api/charts/{chart_id}/resource", headers={"User-Agent": CHROME_UA}
        )

        assert response.headers["content-encoding"] == "gzip"
        assert '.svgz"' in response.headers["content-disposition"]
        # TestClient decodes the gzip body
        root = ET.fromstring(response.content)
        assert root.get("viewBox") == "0 0 809 500"
        assert root.get("preserveAspectRatio") == "xMidYMid"

    def test_legacy_resource_is_png(self, client: TestClient) -> None:
        chart_id = create_chart(client, gzip=True)
        response = client.get(f"/api/charts/{chart_id}/resource", headers={"User-Agent": IE8_UA})

        assert response.headers["content-type"] == "image/png"
        assert "content-encoding" not in response.headers
        assert response.content.startswith(PNG_SIGNATURE)

    def test_mode_from_embed_kept(self, client: TestClient) -> None:
        """The resource follows the mode resolved when embedding."""
        chart_id = create_chart(client)
        client.get(f"/api/charts/{chart_id}/embed", headers={"User-Agent": IE8_UA})
        response = client.get(
            f"/api/charts/{chart_id}/resource", headers={"User-Agent": CHROME_UA}
        )
        assert response.headers["content-type"] == "image/png"

    def test_every_fetch_renders(self, client: TestClient, fake_renderer: FakeRenderer) -> None:
        chart_id = create_chart(client, mode="png")
        first = client.get(f"/api/charts/{chart_id}/resource").content
        second = client.get(f"/api/charts/{chart_id}/resource").content

        assert len(fake_renderer.calls) == 2
        assert first != second

    def test_download(self, client: TestClient) -> None:
        chart_id = create_chart(client, mode="png")
        response = client.get(f"/api/charts/{chart_id}/resource?download=1")
        assert response.headers["content-disposition"].startswith("attachment;")

    def test_render_failure(self, client: TestClient, fake_renderer: FakeRenderer) -> None:
        fake_renderer.fail_with = RuntimeError("backend exploded")
        chart_id = create_chart(client, mode="svg")
        response = client.get(f"/api/charts/{chart_id}/resource")

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["code"] == "render_failed"
        assert detail["stage"] == "draw"
        assert "backend exploded" in detail["message"]

    def test_unknown_chart(self, client: TestClient) -> None:
        response = client.get(f"/api/charts/{uuid4()}/resource")
        assert response.status_code == 404


class TestRulesDefaults:
    """Rules supply wrapper defaults."""

    @pytest.fixture
    def rules(self) -> Rules:
        return Rules(
            chart_embed=ChartEmbedRules(
                default_width=640, default_height=480, gzip_compression=True
            )
        )

    def test_defaults_from_rules(self, client: TestClient) -> None:
        chart_id = create_chart(client, mode="svg")
        data = client.get(f"/api/charts/{chart_id}/embed").json()

        assert (data["graph_width"], data["graph_height"]) == (640, 480)
        assert data["filename"].endswith(".svgz")

    def test_request_overrides_rules(self, client: TestClient) -> None:
        chart_id = create_chart(client, mode="svg", gzip=False)
        data = client.get(f"/api/charts/{chart_id}/embed").json()
        assert data["filename"].endswith(".svg")


# --- Delete ---


class TestDeleteChart:
    def test_delete(self, client: TestClient, registry: InMemoryChartRegistry) -> None:
        chart_id = create_chart(client)
        response = client.delete(f"/api/charts/{chart_id}")

        assert response.status_code == 204
        assert len(registry) == 0
        assert client.get(f"/api/charts/{chart_id}/resource").status_code == 404

    def test_delete_unknown(self, client: TestClient) -> None:
        assert client.delete(f"/api/charts/{uuid4()}").status_code == 404
