"""
HTML -> Markdown conversion shared by the local-parser and browser tiers.

Two steps:
- extract_main_html(): title lookup, noise removal, content-root selection
- html_to_markdown(): markdownify conversion followed by normalize_markdown()
"""

import re

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter

from .models import UNTITLED

NOISE_SELECTORS = [
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "aside",
    ".advertisement",
    ".ads",
    ".sidebar",
    ".comments",
]

# First match wins, no scoring.
CONTENT_ROOT_SELECTORS = [
    "main",
    "article",
    '[role="main"]',
    ".content",
    "#content",
    ".post",
    ".entry-content",
]

DROPPED_TAGS = ["script", "style", "noscript"]

_MANY_NEWLINES = re.compile(r"\n{3,}")
_BLANK_LINE = re.compile(r"^[^\S\n]+$", re.MULTILINE)


class _Converter(MarkdownConverter):
    # script/style/noscript never produce output, whatever survived extraction
    def convert_script(self, el, text, *args, **kwargs):
        return ""

    def convert_style(self, el, text, *args, **kwargs):
        return ""

    def convert_noscript(self, el, text, *args, **kwargs):
        return ""


def normalize_markdown(markdown: str) -> str:
    """
    Whitespace cleanup applied after conversion.

    Whitespace-only lines are blanked before runs of newlines are collapsed,
    so the result is a fixed point: normalize_markdown(normalize_markdown(x))
    == normalize_markdown(x).
    """
    text = markdown.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLANK_LINE.sub("", text)
    text = _MANY_NEWLINES.sub("\n\n", text)
    return text.strip()


def html_to_markdown(html: str) -> str:
    if not html or not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for el in soup(DROPPED_TAGS):
        if not el.decomposed:
            el.decompose()
    converter = _Converter(heading_style=ATX, bullets="-")
    return normalize_markdown(converter.convert_soup(soup))


def select_content_root(soup: BeautifulSoup):
    for selector in CONTENT_ROOT_SELECTORS:
        el = soup.select_one(selector)
        if el is not None:
            return el
    return soup.body or soup


def extract_main_html(html: str, extra_noise: list[str] | None = None) -> tuple[str, str]:
    """
    Parse a full HTML document and return (title, inner HTML of the content root).

    Noise subtrees are removed before the content root is chosen, so a
    <main> nested inside a removed <aside> is never selected.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = UNTITLED
    if soup.title is not None:
        title = soup.title.get_text(strip=True) or UNTITLED

    selectors = NOISE_SELECTORS + list(extra_noise or [])
    for el in soup.select(", ".join(selectors)):
        # children of an already removed subtree are marked decomposed
        if not el.decomposed:
            el.decompose()

    root = select_content_root(soup)
    return title, root.decode_contents()


def extract_markdown(html: str, extra_noise: list[str] | None = None) -> tuple[str, str]:
    title, inner = extract_main_html(html, extra_noise)
    return title, html_to_markdown(inner)


_H1 = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)


def markdown_title(markdown: str) -> str:
    """Text of the first level-1 ATX heading anywhere in the document."""
    match = _H1.search(markdown)
    if not match:
        return UNTITLED
    return match.group(1).strip() or UNTITLED
