from typing import Any

from pydantic import BaseModel, Field

DEFAULT_VN_FIELDS = "id,title,alttitle,image.url,image.thumbnail,rating,released"


class VNDBQueryRequest(BaseModel):
    """Kana v2 query body. Unset/falsy fields are omitted on the wire."""

    filters: Any = None
    fields: str = ""
    sort: str = ""
    reverse: bool = False
    results: int = 0
    page: int = 0
    count: bool = False
    compact_filters: bool = False
    normalized_filters: bool = False

    def to_body(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v not in (None, "", 0, False)}


class VNDBImage(BaseModel):
    url: str = ""
    dims: list[int] = Field(default_factory=list)
    thumbnail: str = ""
    thumbnail_dims: list[int] = Field(default_factory=list)

    def best_url(self) -> str:
        return self.url or self.thumbnail


class VNDBVisualNovel(BaseModel):
    id: str
    title: str = ""
    alttitle: str | None = None
    image: VNDBImage | None = None
    rating: float | None = None
    released: str | None = None


class VNDBQueryResponse(BaseModel):
    results: list[VNDBVisualNovel] = Field(default_factory=list)
    more: bool = False
    count: int = 0


class VNDBStats(BaseModel):
    chars: int = 0
    producers: int = 0
    releases: int = 0
    staff: int = 0
    tags: int = 0
    traits: int = 0
    vn: int = 0


class VNDBAuthInfo(BaseModel):
    id: str
    username: str
    permissions: list[str] = Field(default_factory=list)
