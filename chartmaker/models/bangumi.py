from pydantic import BaseModel, ConfigDict, Field


class BangumiImages(BaseModel):
    common: str | None = None
    large: str | None = None
    medium: str | None = None

    def best_url(self) -> str:
        """common > large > medium, always over https."""
        cover = self.common or self.large or self.medium or ""
        if cover.startswith("http://"):
            cover = "https://" + cover[len("http://") :]
        return cover


class BangumiSubject(BaseModel):
    """Subject as returned by both the legacy search and the v0 search API."""

    id: int
    name: str | None = None
    name_cn: str | None = None
    images: BangumiImages | None = None
    type: int | None = None
    score: float | None = None
    summary: str | None = None

    def cover(self) -> str:
        return self.images.best_url() if self.images else ""


class BangumiSearchPage(BaseModel):
    # Legacy search answers {"code": 404, ...} when nothing matches
    model_config = ConfigDict(populate_by_name=True)

    items: list[BangumiSubject] | None = Field(default=None, alias="list")


class BangumiBrowsePage(BaseModel):
    total: int | None = None
    data: list[BangumiSubject] | None = None
