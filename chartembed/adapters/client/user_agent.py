"""
User-Agent client detection.

Builds ClientInfo from a User-Agent header and decides SVG support.
Only legacy Internet Explorer (below version 9) lacks inline SVG; every
other browser family is assumed capable.
"""

from __future__ import annotations

import re

from chartembed.components.chart_embed.models import ClientInfo

# Checked in order: Edge and Opera also announce Chrome, Chrome announces Safari
_BROWSER_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("msie", re.compile(r"MSIE (\d+)")),
    ("msie", re.compile(r"Trident/.*rv:(\d+)")),
    ("edge", re.compile(r"Edg(?:e|A|iOS)?/(\d+)")),
    ("opera", re.compile(r"OPR/(\d+)")),
    ("opera", re.compile(r"Opera.*Version/(\d+)")),
    ("opera", re.compile(r"Opera[/ ](\d+)")),
    ("firefox", re.compile(r"Firefox/(\d+)")),
    ("chrome", re.compile(r"(?:Chrome|CriOS)/(\d+)")),
    ("safari", re.compile(r"Version/(\d+).*Safari/")),
)

LEGACY_FAMILY = "msie"
MIN_SVG_MAJOR_VERSION = 9


def parse_user_agent(user_agent: str | None) -> ClientInfo:
    """Identify browser family and major version from a User-Agent string."""
    ua = user_agent or ""
    for family, pattern in _BROWSER_PATTERNS:
        match = pattern.search(ua)
        if match:
            return ClientInfo(
                user_agent=ua,
                browser_family=family,
                major_version=int(match.group(1)),
            )
    return ClientInfo(user_agent=ua)


class UserAgentCapability:
    """SVG capability by browser family and major version threshold."""

    def __init__(
        self,
        legacy_family: str = LEGACY_FAMILY,
        min_svg_major_version: int = MIN_SVG_MAJOR_VERSION,
    ) -> None:
        self.legacy_family = legacy_family.lower()
        self.min_svg_major_version = min_svg_major_version

    def supports_vector(self, client: ClientInfo) -> bool:
        if client.browser_family != self.legacy_family:
            # all decent browsers support SVG
            return True
        return client.major_version >= self.min_svg_major_version
