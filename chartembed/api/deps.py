import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from chartembed.adapters.chart_registry import InMemoryChartRegistry
from chartembed.adapters.client.user_agent import UserAgentCapability
from chartembed.adapters.render.mpl_renderer import MatplotlibChartRenderer
from chartembed.rules.loader import load_rules
from chartembed.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(
            os.environ.get("CHART_EMBED_RULES", str(self.base_dir / "rules.yaml"))
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(settings.rules_path)


# --- Adapters ---
def get_renderer(rules: Rules = Depends(get_rules)) -> MatplotlibChartRenderer:
    return MatplotlibChartRenderer(dpi=rules.chart_embed.dpi)


def get_capability(rules: Rules = Depends(get_rules)) -> UserAgentCapability:
    legacy = rules.chart_embed.legacy_browser
    return UserAgentCapability(
        legacy_family=legacy.family,
        min_svg_major_version=legacy.min_svg_major_version,
    )


# Singleton registry
_chart_registry = InMemoryChartRegistry()


def get_chart_registry() -> InMemoryChartRegistry:
    return _chart_registry
