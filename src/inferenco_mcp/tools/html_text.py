"""Visible-text extraction from HTML documents."""

import re
from html.parser import HTMLParser
from typing import Callable, Dict, List, Optional, Sequence

# Most specific content region first; whole-document text is the last resort.
DEFAULT_SELECTORS: Sequence[str] = (
    "main",
    "article",
    "[role=main]",
    "#content",
    ".content",
    "body",
)

SKIP_TAGS = {"script", "style", "noscript", "template", "svg", "head"}
VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}

ELLIPSIS = "..."

Matcher = Callable[[str, Dict[str, str]], bool]

_WHITESPACE = re.compile(r"\s+")
_ATTRIBUTE_SELECTOR = re.compile(r"^\[([\w-]+)=[\"']?([^\"'\]]*)[\"']?\]$")


def compile_selector(selector: str) -> Matcher:
    """
    Build a matcher for a simple selector.

    Supported forms: ``tag``, ``#id``, ``.class`` and ``[attr=value]``.
    """
    selector = selector.strip()

    if selector.startswith("#"):
        element_id = selector[1:]
        return lambda tag, attrs: attrs.get("id") == element_id

    if selector.startswith("."):
        class_name = selector[1:]
        return lambda tag, attrs: class_name in (attrs.get("class") or "").split()

    attribute = _ATTRIBUTE_SELECTOR.match(selector)
    if attribute:
        name, value = attribute.group(1).lower(), attribute.group(2)
        return lambda tag, attrs: attrs.get(name) == value

    tag_name = selector.lower()
    return lambda tag, attrs: tag == tag_name


class _RegionTextParser(HTMLParser):
    """Collect text inside the first element matching ``matcher``, or everywhere if None."""

    def __init__(self, matcher: Optional[Matcher] = None):
        super().__init__(convert_charrefs=True)
        self.matcher = matcher
        self.parts: List[str] = []
        self.skip_depth = 0
        self.capturing = matcher is None
        self.region_tag: Optional[str] = None
        self.region_depth = 0
        self.finished = False

    def handle_starttag(self, tag, attrs):
        if self.finished:
            return

        if not self.capturing:
            attrs_dict = {name.lower(): value or "" for name, value in attrs}
            if self.matcher(tag, attrs_dict):
                self.capturing = True
                self.region_tag = tag
                self.region_depth = 0 if tag in VOID_TAGS else 1
            return

        if tag == self.region_tag and tag not in VOID_TAGS:
            self.region_depth += 1
        if tag in SKIP_TAGS:
            self.skip_depth += 1
        self.parts.append(" ")

    def handle_endtag(self, tag):
        if self.finished or not self.capturing:
            return

        if tag in SKIP_TAGS and self.skip_depth:
            self.skip_depth -= 1
        self.parts.append(" ")

        if self.region_tag is not None and tag == self.region_tag:
            self.region_depth -= 1
            if self.region_depth <= 0:
                self.finished = True

    def handle_data(self, data):
        if self.capturing and not self.finished and not self.skip_depth:
            self.parts.append(data)

    def text(self) -> str:
        return collapse_whitespace("".join(self.parts))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _parse(html: str, matcher: Optional[Matcher]) -> str:
    parser = _RegionTextParser(matcher)
    parser.feed(html)
    parser.close()
    return parser.text()


def extract_visible_text(html: str, selectors: Sequence[str] = DEFAULT_SELECTORS) -> str:
    """Text of the first selector region that has any, else of the whole document."""
    for selector in selectors:
        text = _parse(html, compile_selector(selector))
        if text:
            return text
    return _parse(html, None)


def summarize(text: str, max_chars: int, marker: str = ELLIPSIS) -> str:
    """Truncate ``text`` to at most ``max_chars`` characters, ending in ``marker`` when cut."""
    if len(text) <= max_chars:
        return text
    if max_chars <= len(marker):
        return marker[:max_chars]
    keep = max_chars - len(marker)
    return text[:keep].rstrip() + marker
