from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from chartembed.components.chart_embed import EmbedType, RenderingMode

# --- Shared Enums/Types ---
ChartType = Literal["bar", "line", "scatter"]


# --- Chart Spec ---
class ChartDataModel(BaseModel):
    x: list[float | int | str] = []
    y: list[float] = []


class ChartSpecModel(BaseModel):
    type: ChartType = "line"
    title: str | None = None
    data: ChartDataModel = Field(default_factory=ChartDataModel)
    xlabel: str | None = None
    ylabel: str | None = None


# --- Charts ---
class ChartCreateRequest(BaseModel):
    spec: ChartSpecModel
    mode: RenderingMode = RenderingMode.AUTO
    gzip: bool | None = None  # None = rules default
    width: str | None = None  # CSS-like size, e.g. "12cm", "100%"
    height: str | None = None
    graph_width: int | None = Field(default=None, gt=0)
    graph_height: int | None = Field(default=None, gt=0)
    svg_aspect_ratio: str | None = None


class ChartCreateResponse(BaseModel):
    id: UUID


class ChartEmbedResponse(BaseModel):
    id: UUID
    mode: RenderingMode
    embed_type: EmbedType
    mime_type: str
    filename: str
    src: str
    html: str
    graph_width: int
    graph_height: int
