from pydantic import BaseModel, ConfigDict, Field


class LegacyBrowserRules(BaseModel):
    family: str = "msie"
    min_svg_major_version: int = Field(default=9, ge=0)


class ChartEmbedRules(BaseModel):
    """Chart embed defaults; doubles as the component RulesPort."""

    default_width: int = Field(default=809, gt=0)
    default_height: int = Field(default=500, gt=0)
    dpi: int = Field(default=96, gt=0)
    svg_aspect_ratio: str = "none"
    gzip_compression: bool = False
    resource_name_prefix: str = Field(default="graph", min_length=1)
    height_uses_width_unit: bool = False
    legacy_browser: LegacyBrowserRules = Field(default_factory=LegacyBrowserRules)

    model_config = ConfigDict(extra="forbid")

    def get_default_width(self) -> int:
        return self.default_width

    def get_default_height(self) -> int:
        return self.default_height

    def get_svg_aspect_ratio(self) -> str:
        return self.svg_aspect_ratio

    def get_gzip_compression(self) -> bool:
        return self.gzip_compression

    def get_resource_name_prefix(self) -> str:
        return self.resource_name_prefix

    def get_height_uses_width_unit(self) -> bool:
        return self.height_uses_width_unit


class ProjectRules(BaseModel):
    slug: str = "chart-embed"
    rules_version: str = "1"


class Rules(BaseModel):
    project: ProjectRules = Field(default_factory=ProjectRules)
    chart_embed: ChartEmbedRules = Field(default_factory=ChartEmbedRules)
