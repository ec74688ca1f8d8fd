from typing import Dict, Iterable, List

import bleach
from markdown import markdown

_ALLOWED_TAGS: List[str] = [
    "a", "p", "br", "strong", "em", "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "blockquote", "code", "pre", "hr",
    "table", "thead", "tbody", "tr", "th", "td",
]

_ALLOWED_ATTRS: Dict[str, Iterable[str]] = {
    "a": ["href", "title", "target", "rel"],
    "code": ["class"],
}

_ALLOWED_PROTOCOLS = ["http", "https", "mailto"]


def render_safe_markdown(text: str) -> str:
    """Markdown (as returned by the model) to sanitized HTML"""
    raw_html = markdown(
        str(text or ""),
        extensions=["extra", "sane_lists"],
        output_format="html",
    )
    return bleach.clean(
        raw_html,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRS,
        protocols=_ALLOWED_PROTOCOLS,
        strip=True,
    )
