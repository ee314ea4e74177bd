from pydantic import BaseModel, ConfigDict, Field, field_validator

from chartmaker.models.catalog import BrowseResult, ItemId


class RecommendCellSpec(BaseModel):
    """
    Recommendation parameters for one grid cell.

    ``tags``, ``sort`` and ``subject_type`` decide what is fetched; ``skip``
    (``offset`` on the wire) passes over that many otherwise-eligible items
    for "show me another".
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str = ""
    tags: tuple[str, ...] = ()
    sort: str = ""
    subject_type: str = Field(default="", alias="subjectType")
    skip: int = Field(default=0, alias="offset")

    @field_validator("skip")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        return max(v, 0)


class RecommendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cells: list[RecommendCellSpec] = Field(default_factory=list)
    exclude_ids: list[ItemId] = Field(default_factory=list, alias="excludeIDs")


class RecommendCellResult(BaseModel):
    label: str = ""
    item: BrowseResult | None = None
    found: bool = False


class RecommendResponse(BaseModel):
    results: list[RecommendCellResult] = Field(default_factory=list)
