from pydantic import BaseModel, ConfigDict, Field

ItemId = int | str


class SearchResult(BaseModel):
    id: int
    name: str = ""
    name_cn: str = ""
    cover: str = ""
    summary: str = ""


class BrowseRequest(BaseModel):
    """Tag/keyword browse parameters as sent by the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    tags: list[str] = Field(default_factory=list)
    keyword: str = ""
    offset: int = 0
    limit: int = 0
    sort: str = ""
    order: str = ""
    subject_type: str = Field(default="", alias="subjectType")


class BrowseResult(BaseModel):
    # Bangumi ids are integers, VNDB ids are strings like "v17"
    id: ItemId
    name: str = ""
    name_cn: str = ""
    cover: str = ""
    type_label: str = ""
    score: float = 0.0
    source: str = "bangumi"


class BrowseResponse(BaseModel):
    results: list[BrowseResult] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0


class DownloadResult(BaseModel):
    filename: str
    path: str
    size: int
