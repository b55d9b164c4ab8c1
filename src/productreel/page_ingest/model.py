from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, HttpUrl, model_validator


def slugify(text: str) -> str:
    cleaned = "".join(ch.lower() if ch.isalnum() else "-" for ch in text)
    return "-".join(filter(None, cleaned.split("-")))[:80]


class PageMetadata(BaseModel):
    url: HttpUrl
    title: str
    description: Optional[str] = None
    theme_color: Optional[str] = None
    logo_url: Optional[str] = None
    slug: str = ""

    @model_validator(mode="before")
    @classmethod
    def derive_slug(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        slug = data.get("slug")
        if isinstance(slug, str) and slug:
            return {**data, "slug": slugify(slug)}
        for source in (data.get("title"), data.get("url")):
            if source:
                return {**data, "slug": slugify(str(source))}
        raise ValueError("Cannot derive slug without title or url")


class PageBundle(BaseModel):
    """Landing page content handed to the storyboard planner."""

    metadata: PageMetadata
    text: str
    headings: List[str] = Field(default_factory=list)

    @property
    def slug(self) -> str:
        return self.metadata.slug

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def to_prompt_payload(self, max_chars: int = 6000) -> dict[str, Any]:
        meta = self.metadata
        return {
            "productUrl": str(meta.url),
            "title": meta.title,
            "tagline": meta.description or meta.title,
            "description": meta.description,
            "themeColor": meta.theme_color,
            "logoUrl": meta.logo_url,
            "headings": self.headings,
            "text": self.text[:max_chars],
        }
