import logging

from chartembed.components.chart_embed import is_valid_aspect_ratio
from chartembed.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_embed_rules(rules: Rules) -> None:
    """
    Validate chart embed rules before startup.
    Raises ValueError listing every problem found.
    """
    embed = rules.chart_embed
    problems = []

    # 1. Aspect ratio must be a valid SVG preserveAspectRatio value
    if not is_valid_aspect_ratio(embed.svg_aspect_ratio):
        problems.append(f"invalid svg_aspect_ratio: {embed.svg_aspect_ratio!r}")

    # 2. Prefix ends up in filenames and Content-Disposition headers
    if any(ch in embed.resource_name_prefix for ch in '/\\"\n'):
        problems.append(f"invalid resource_name_prefix: {embed.resource_name_prefix!r}")

    if problems:
        raise ValueError("Chart embed rules invalid: " + "; ".join(problems))

    if embed.height_uses_width_unit:
        logger.warning("height_uses_width_unit is enabled: height converts with the width unit")

    logger.info("Configuration validated.")
