"""HTML parsing utilities for page metadata."""

from html.parser import HTMLParser
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin


class PageMetaParser(HTMLParser):
    """Parse HTML and extract the document metadata audits care about."""

    def __init__(self, base_url: Optional[str] = None) -> None:
        super().__init__()
        self.reset()
        self.convert_charrefs = True
        self.base_url = base_url
        self.html_lang: Optional[str] = None
        self.title_parts: List[str] = []
        self.has_title_element = False
        self.metas: List[Dict[str, str]] = []
        self.canonical_href: Optional[str] = None
        self.ignore_depth = 0
        self._in_title = False
        self._seen_title = False

    def handle_starttag(self, tag: str, attrs: List[Any]) -> None:
        tag = tag.lower()
        attributes = {k.lower(): (v or "") for k, v in attrs}
        if tag in ("script", "style"):
            self.ignore_depth += 1
            return
        if tag == "html" and self.html_lang is None:
            self.html_lang = attributes.get("lang")
        elif tag == "title" and not self._seen_title:
            self.has_title_element = True
            self._in_title = True
        elif tag == "meta":
            self.metas.append(
                {
                    "name": attributes.get("name", "").lower(),
                    "property": attributes.get("property", ""),
                    "http_equiv": attributes.get("http-equiv", "").lower(),
                    "content": attributes.get("content", ""),
                    "charset": attributes.get("charset", ""),
                }
            )
        elif tag == "link" and "canonical" in attributes.get("rel", "").lower().split():
            href = attributes.get("href", "")
            self.canonical_href = urljoin(self.base_url, href) if self.base_url else href

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in ("script", "style"):
            if self.ignore_depth > 0:
                self.ignore_depth -= 1
        elif tag == "title" and self._in_title:
            self._in_title = False
            self._seen_title = True

    def handle_data(self, data: str) -> None:
        if self._in_title and self.ignore_depth == 0:
            self.title_parts.append(data)

    @property
    def title(self) -> Optional[str]:
        if not self.has_title_element:
            return None
        return " ".join("".join(self.title_parts).split())

    def meta_content(self, name: str) -> Optional[str]:
        """Return the content of the first ``<meta name=...>`` with ``name``."""
        for meta in self.metas:
            if meta["name"] == name:
                return meta["content"]
        return None


def parse_page_meta(html: str, base_url: Optional[str] = None) -> Dict[str, Any]:
    """Extract title, meta tags, canonical link and html lang from ``html``."""
    parser = PageMetaParser(base_url=base_url)
    parser.feed(html or "")
    parser.close()
    return {
        "title": parser.title,
        "description": parser.meta_content("description"),
        "viewport": parser.meta_content("viewport"),
        "lang": parser.html_lang,
        "canonical": parser.canonical_href,
        "metas": parser.metas,
    }
