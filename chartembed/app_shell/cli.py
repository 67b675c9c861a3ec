import argparse
import logging
import sys
from pathlib import Path

import yaml

from chartembed.adapters.client.user_agent import UserAgentCapability, parse_user_agent
from chartembed.adapters.render.mpl_renderer import MatplotlibChartRenderer, SpecChart
from chartembed.app_shell.config import validate_embed_rules
from chartembed.components.chart_embed import (
    ChartRenderError,
    RenderChartInput,
    RenderingMode,
    parse_dimension,
    run_render,
)
from chartembed.rules.loader import load_rules
from chartembed.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

RULES_PATH = "rules.yaml"

# Only these are replaced; any other dot stays part of the base name
OUTPUT_SUFFIXES = (".svg", ".svgz", ".png")


def get_rules(path: str) -> Rules:
    rules_path = Path(path)
    if not rules_path.exists():
        logger.info(f"Rules file {rules_path} not found, using defaults.")
        return Rules()
    return load_rules(rules_path)


def load_chart_spec(path: Path) -> dict:
    """Read a chart spec from a YAML (or JSON) file."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Chart spec in {path} must be a mapping")
    return data


def handle_render(rules: Rules, args: argparse.Namespace) -> int:
    try:
        chart = SpecChart.from_dict(load_chart_spec(Path(args.spec)))
        width = parse_dimension(args.width)
        height = parse_dimension(args.height)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid input: {e}")
        return 2

    embed = rules.chart_embed
    inp = RenderChartInput(
        chart=chart,
        mode=RenderingMode(args.mode),
        width=width,
        height=height,
        graph_width=args.graph_width,
        graph_height=args.graph_height,
        gzip=args.gzip if args.gzip is not None else embed.gzip_compression,
        svg_aspect_ratio=args.aspect_ratio or embed.svg_aspect_ratio,
        client=parse_user_agent(args.user_agent),
    )
    capability = UserAgentCapability(
        legacy_family=embed.legacy_browser.family,
        min_svg_major_version=embed.legacy_browser.min_svg_major_version,
    )

    out = Path(args.output)
    base_name = out.stem if out.suffix.lower() in OUTPUT_SUFFIXES else out.name
    try:
        result = run_render(
            inp,
            renderer=MatplotlibChartRenderer(dpi=embed.dpi),
            capability=capability,
            rules=embed,
            base_name=base_name,
        )
    except ChartRenderError as e:
        logger.error(f"Rendering failed ({e.stage}): {e.message}")
        return 1

    target = out.with_name(result.filename)
    target.write_bytes(result.data)
    print(f"Chart written: {target} ({result.mode.value}, {result.width}x{result.height})")
    return 0


def handle_check_rules(rules_path: str) -> int:
    try:
        validate_embed_rules(load_rules(Path(rules_path)))
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    print(f"Rules OK: {rules_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Chart Embed CLI")
    parser.add_argument("--rules", default=RULES_PATH, help="Path to rules.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # render
    render_parser = subparsers.add_parser("render", help="Render a chart spec to a file")
    render_parser.add_argument("spec", help="Chart spec file (YAML or JSON)")
    render_parser.add_argument("-o", "--output", default="graph", help="Output path")
    render_parser.add_argument(
        "--mode", choices=[m.value for m in RenderingMode], default=RenderingMode.AUTO.value
    )
    render_parser.add_argument("--width", default=None, help="Size like 809px, 12cm, 8in")
    render_parser.add_argument("--height", default=None, help="Size like 500px, 8cm, 5in")
    render_parser.add_argument("--graph-width", type=int, default=-1, help="Pixel override")
    render_parser.add_argument("--graph-height", type=int, default=-1, help="Pixel override")
    render_parser.add_argument("--aspect-ratio", default=None, help="preserveAspectRatio")
    render_parser.add_argument("--user-agent", default="", help="Client for AUTO mode")
    gzip_group = render_parser.add_mutually_exclusive_group()
    gzip_group.add_argument("--gzip", dest="gzip", action="store_true", default=None)
    gzip_group.add_argument("--no-gzip", dest="gzip", action="store_false")

    # check-rules
    subparsers.add_parser("check-rules", help="Validate the rules file")

    args = parser.parse_args(argv)

    if args.command == "check-rules":
        return handle_check_rules(args.rules)

    try:
        rules = get_rules(args.rules)
    except ValueError as e:
        logger.error(str(e))
        return 1

    return handle_render(rules, args)


if __name__ == "__main__":
    sys.exit(main())
