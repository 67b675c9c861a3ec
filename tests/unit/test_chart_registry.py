from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

from chartembed.adapters.chart_registry import InMemoryChartRegistry
from chartembed.components.chart_embed import RenderingMode


def test_add_get_remove(make_wrapper):
    registry = InMemoryChartRegistry()
    wrapper = make_wrapper(RenderingMode.SVG)

    chart_id = registry.add(wrapper)
    assert registry.get(chart_id) is wrapper
    assert len(registry) == 1

    assert registry.remove(chart_id) is wrapper
    assert registry.get(chart_id) is None
    assert len(registry) == 0


def test_unknown_ids(make_wrapper):
    registry = InMemoryChartRegistry()
    assert registry.get(uuid4()) is None
    assert registry.remove(uuid4()) is None


def test_clear(make_wrapper):
    registry = InMemoryChartRegistry()
    registry.add(make_wrapper())
    registry.add(make_wrapper())
    registry.clear()
    assert len(registry) == 0


def test_concurrent_dirty_and_fetch(make_wrapper, fake_renderer):
    """Fetching while other threads mark the wrapper dirty never fails."""
    wrapper = make_wrapper(RenderingMode.PNG)

    def fetch(i: int) -> bytes:
        if i % 2:
            wrapper.mark_as_dirty()
        return wrapper.get_source().get_stream().data

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(fetch, range(40)))

    assert len(results) == 40
    assert len(fake_renderer.calls) == 40
