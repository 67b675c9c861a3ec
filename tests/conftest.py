from datetime import UTC, datetime

import pytest

from chartembed.adapters.client.user_agent import UserAgentCapability
from chartembed.components.chart_embed import ChartWrapper, RenderingMode
from tests.fakes import FakeChart, FakeRenderer, FixedClock


@pytest.fixture
def fake_chart() -> FakeChart:
    return FakeChart()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def capability() -> UserAgentCapability:
    return UserAgentCapability()


@pytest.fixture
def make_wrapper(fake_chart, fake_renderer, capability, fixed_clock):
    """Factory for wrappers wired to the fakes."""

    def _make(mode: RenderingMode = RenderingMode.AUTO, **kwargs) -> ChartWrapper:
        kwargs.setdefault("renderer", fake_renderer)
        kwargs.setdefault("capability", capability)
        kwargs.setdefault("clock", fixed_clock)
        return ChartWrapper(fake_chart, mode, **kwargs)

    return _make
