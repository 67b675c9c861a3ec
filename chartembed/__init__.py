"""Chart Embed - server-rendered charts embedded as SVG or PNG."""

__version__ = "0.1.0"
