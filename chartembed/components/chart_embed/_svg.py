"""
SVG document finalization for embedded charts.

Rewrites a renderer's SVG so it stretches to its container:

- viewBox is the graph pixel rectangle; content drawn in another
  coordinate system (matplotlib draws in points) is scaled into it
- width/height are 100% and preserveAspectRatio is configurable
- styling is carried by presentation attributes only: inline style
  declarations are expanded and stylesheets are removed
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from .models import ChartRenderError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)
ET.register_namespace("rdf", "http://www.w3.org/1999/02/22-rdf-syntax-ns#")
ET.register_namespace("cc", "http://creativecommons.org/ns#")
ET.register_namespace("dc", "http://purl.org/dc/elements/1.1/")

_SVG_TAG = f"{{{SVG_NS}}}svg"
_STYLE_TAG = f"{{{SVG_NS}}}style"
_GROUP_TAG = f"{{{SVG_NS}}}g"

# Children that stay direct descendants of <svg> when content is scaled
_UNSCALED_TAGS = {f"{{{SVG_NS}}}{name}" for name in ("defs", "metadata", "title", "desc")}

_CSS_RULE_RE = re.compile(r"([^{}]+)\{([^}]*)\}")


def parse_declarations(css: str) -> list[tuple[str, str]]:
    """Split 'a: 1; b: 2' into [('a', '1'), ('b', '2')]."""
    declarations: list[tuple[str, str]] = []
    for chunk in css.split(";"):
        if ":" not in chunk:
            continue
        name, value = chunk.split(":", 1)
        name, value = name.strip(), value.strip()
        if name and value:
            declarations.append((name, value))
    return declarations


def _parse_view_box(value: str | None) -> tuple[float, float] | None:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        return float(parts[2]), float(parts[3])
    except ValueError:
        return None


def _fold_stylesheets(root: ET.Element) -> None:
    """Remove <style> elements; universal-selector rules move onto the root."""
    for parent in list(root.iter()):
        for child in list(parent):
            if child.tag != _STYLE_TAG:
                continue
            for selector, body in _CSS_RULE_RE.findall(child.text or ""):
                if selector.strip() != "*":
                    continue
                for name, value in parse_declarations(body):
                    if root.get(name) is None:
                        root.set(name, value)
            parent.remove(child)


def _expand_inline_styles(root: ET.Element) -> None:
    for element in root.iter():
        style = element.attrib.pop("style", None)
        if style is None:
            continue
        for name, value in parse_declarations(style):
            # Inline style wins over an existing presentation attribute
            element.set(name, value)


def _scale_content(root: ET.Element, sx: float, sy: float) -> None:
    group = ET.Element(_GROUP_TAG, {"transform": f"scale({sx:g} {sy:g})"})
    for child in list(root):
        if child.tag in _UNSCALED_TAGS:
            continue
        root.remove(child)
        group.append(child)
    root.append(group)


def finalize_svg(
    document: bytes | str,
    width: int,
    height: int,
    aspect_ratio: str = "none",
) -> bytes:
    """
    Finalize a rendered SVG document for embedding.

    Args:
        document: SVG produced by the chart renderer.
        width: Graph width in pixels (viewBox width).
        height: Graph height in pixels (viewBox height).
        aspect_ratio: preserveAspectRatio value.

    Returns:
        UTF-8 encoded SVG with XML declaration.

    Raises:
        ChartRenderError: If the document is not a parsable SVG.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise ChartRenderError(f"Invalid SVG document: {e}", stage="document") from e

    if root.tag != _SVG_TAG:
        raise ChartRenderError(f"Root element is not <svg>: {root.tag}", stage="document")

    source_box = _parse_view_box(root.get("viewBox"))
    if source_box is not None:
        source_width, source_height = source_box
        if source_width > 0 and source_height > 0:
            sx = width / source_width
            sy = height / source_height
            if abs(sx - 1.0) > 1e-9 or abs(sy - 1.0) > 1e-9:
                _scale_content(root, sx, sy)

    _fold_stylesheets(root)
    _expand_inline_styles(root)

    root.set("viewBox", f"0 0 {width} {height}")
    root.set("width", "100%")
    root.set("height", "100%")
    root.set("preserveAspectRatio", aspect_ratio)

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
