from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from pydantic import HttpUrl
from trafilatura import extract as trafilatura_extract

from .model import PageBundle, PageMetadata

logger = logging.getLogger(__name__)


class PageIngestor:
    """Fetches a product landing page and pulls out what the planner needs."""

    _MIN_WORDS = 40
    _MAX_HEADINGS = 20

    def __init__(self, timeout: float = 15.0) -> None:
        self.timeout = timeout

    def ingest(self, url: str | HttpUrl) -> PageBundle:
        response = requests.get(str(url), timeout=self.timeout, headers={"User-Agent": "productreel/0.1"})
        response.raise_for_status()

        raw_html = response.text
        final_url = str(response.url)
        soup = BeautifulSoup(raw_html, "html.parser")

        extracted = trafilatura_extract(raw_html, include_comments=False, include_tables=False, url=final_url)
        if not extracted or self._looks_sparse(extracted):
            if extracted:
                logger.warning(
                    "Trafilatura extraction sparse (%d words); falling back to BeautifulSoup",
                    len(extracted.split()),
                )
            else:
                logger.warning("Trafilatura extraction failed; falling back to BeautifulSoup")
            extracted = self._fallback_extract(soup)

        metadata = PageMetadata(
            url=final_url,
            title=self._extract_title(soup) or final_url,
            description=self._extract_description(soup),
            theme_color=self._meta_content(soup, name="theme-color"),
            logo_url=self._extract_logo(soup, final_url),
        )
        bundle = PageBundle(metadata=metadata, text=extracted or "", headings=self._extract_headings(soup))
        logger.info("Ingested %s (%d words, %d headings)", final_url, bundle.word_count, len(bundle.headings))
        return bundle

    def _looks_sparse(self, text: str) -> bool:
        return len(text.split()) < self._MIN_WORDS

    def _fallback_extract(self, soup: BeautifulSoup) -> str:
        blocks = [tag.get_text(" ", strip=True) for tag in soup.find_all(["p", "li"])]
        return "\n".join(block for block in blocks if block)

    def _extract_headings(self, soup: BeautifulSoup) -> List[str]:
        headings: List[str] = []
        for tag in soup.find_all(["h1", "h2", "h3"]):
            text = tag.get_text(" ", strip=True)
            if text and text not in headings:
                headings.append(text)
            if len(headings) >= self._MAX_HEADINGS:
                break
        return headings

    def _extract_title(self, soup: BeautifulSoup) -> Optional[str]:
        og_title = self._meta_content(soup, prop="og:title")
        if og_title:
            return og_title
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        return None

    def _extract_description(self, soup: BeautifulSoup) -> Optional[str]:
        return self._meta_content(soup, prop="og:description") or self._meta_content(soup, name="description")

    def _extract_logo(self, soup: BeautifulSoup, base_url: str) -> Optional[str]:
        image = self._meta_content(soup, prop="og:image")
        if image:
            return urljoin(base_url, image)
        icon = soup.find("link", rel=lambda value: value and "icon" in value)
        if icon and icon.get("href"):
            return urljoin(base_url, icon["href"])
        return None

    def _meta_content(self, soup: BeautifulSoup, name: str | None = None, prop: str | None = None) -> Optional[str]:
        attrs = {"name": name} if name else {"property": prop}
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"].strip()
        return None
