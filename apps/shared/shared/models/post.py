"""Raw scraped post: the JSON document the scraper drops into scraped_posts/."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class MediaRef(BaseModel):
    """A media attachment as captured by the scraper.

    Example:
        {"originalUrl": "https://scontent.xx.fbcdn.net/v/abc.jpg",
         "localPath": "scraped_posts/media/123_1718000000.jpg",
         "filename": "123_1718000000.jpg"}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str | None = Field(default=None, validation_alias=AliasChoices("originalUrl", "url"))
    local_path: str | None = Field(default=None, validation_alias=AliasChoices("localPath", "local_path"))
    filename: str | None = None


class RawScrapedPost(BaseModel):
    """A single post captured by the scraping collaborator.

    Wire format is the scraper's camelCase JSON. Every field is optional:
    scrapes are best-effort and the builder supplies defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    post_id: str | None = Field(default=None, validation_alias=AliasChoices("postId", "post_id"))
    permalink: str | None = None
    scraped_at: str | None = Field(default=None, validation_alias=AliasChoices("scrapedAt", "scraped_at"))
    published_at: str | None = Field(default=None, validation_alias=AliasChoices("publishedAt", "published_at"))
    full_text: str | None = Field(default=None, validation_alias=AliasChoices("fullText", "full_text"))

    poster_name: str | None = Field(default=None, validation_alias=AliasChoices("posterName", "poster_name"))
    poster_profile_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("posterProfileId", "posterId", "poster_profile_id"),
    )
    poster_profile_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("posterProfileUrl", "poster_profile_url"),
    )

    sharer_name: str | None = Field(default=None, validation_alias=AliasChoices("sharerName", "sharer_name"))
    sharer_profile_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sharerProfileId", "sharerId", "sharer_profile_id"),
    )
    sharer_profile_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sharerProfileUrl", "sharer_profile_url"),
    )

    media: list[MediaRef] = Field(default_factory=list, validation_alias=AliasChoices("mediaUrls", "media"))

    @field_validator("media", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []

    @property
    def is_shared(self) -> bool:
        return bool(self.sharer_name)
