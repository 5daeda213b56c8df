"""Input sanitizers for user-controlled styling and URLs."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit


logger = logging.getLogger(__name__)

MAX_CSS_LENGTH = 50_000

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

DANGEROUS_PATTERNS = [
    re.compile(r"expression\s*\(", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"vbscript\s*:", re.IGNORECASE),
    re.compile(r"-moz-binding\s*:", re.IGNORECASE),
    re.compile(r"behavior\s*:", re.IGNORECASE),
    re.compile(r"url\s*\(\s*[\"']?\s*data:", re.IGNORECASE),
    re.compile(r"url\s*\(\s*[\"']?\s*javascript:", re.IGNORECASE),
    re.compile(r"@import", re.IGNORECASE),
    re.compile(r"@charset", re.IGNORECASE),
    re.compile(r"@namespace", re.IGNORECASE),
    re.compile(r"\\[0-9a-f]{1,6}", re.IGNORECASE),
    re.compile(r"<\s*/?\s*(style|script)", re.IGNORECASE),
]

ALLOWED_PROPERTIES = frozenset(
    {
        # colours & backgrounds
        "color", "background", "background-color", "background-image",
        "background-size", "background-position", "background-repeat",
        "background-attachment", "opacity", "filter",
        # typography
        "font", "font-family", "font-size", "font-weight", "font-style",
        "font-variant", "line-height", "letter-spacing", "word-spacing",
        "text-align", "text-decoration", "text-transform", "text-indent",
        "text-shadow", "white-space", "word-wrap", "word-break", "overflow-wrap",
        # box model
        "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
        "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
        "border", "border-width", "border-style", "border-color", "border-top",
        "border-right", "border-bottom", "border-left", "border-radius",
        "box-shadow", "box-sizing",
        # layout
        "display", "position", "top", "right", "bottom", "left", "width",
        "height", "min-width", "max-width", "min-height", "max-height",
        "overflow", "overflow-x", "overflow-y", "visibility", "z-index",
        "flex", "flex-direction", "flex-wrap", "flex-grow", "flex-shrink",
        "flex-basis", "justify-content", "align-items", "align-content",
        "align-self", "order", "gap", "row-gap", "column-gap", "grid",
        "grid-template-columns", "grid-template-rows", "grid-column", "grid-row",
        # motion
        "transform", "transform-origin", "transition", "animation",
        "animation-name", "animation-duration", "animation-delay",
        "animation-iteration-count", "animation-timing-function",
        # other
        "cursor", "outline", "outline-color", "list-style", "vertical-align",
        "clip-path", "object-fit", "object-position", "backdrop-filter",
        "mix-blend-mode",
    }
)

HEX_COLOR = re.compile(r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")
RGB_COLOR = re.compile(
    r"^rgba?\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*(,\s*(0|1|0?\.\d+))?\s*\)$"
)
HSL_COLOR = re.compile(
    r"^hsla?\(\s*\d{1,3}\s*,\s*\d{1,3}%\s*,\s*\d{1,3}%\s*(,\s*(0|1|0?\.\d+))?\s*\)$"
)


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


def _has_danger(value: str) -> bool:
    return any(p.search(value) for p in DANGEROUS_PATTERNS)


def sanitize_css(css: str | None) -> str:
    """Keep only `property: value` declarations on the allow-list.

    Custom properties (``--name``) are always allowed; any declaration whose
    value matches a dangerous pattern is dropped.
    """
    if not css:
        return ""
    cleaned = strip_control_chars(css)
    cleaned = re.sub(r"/\*.*?\*/", "", cleaned, flags=re.DOTALL)
    if len(cleaned) > MAX_CSS_LENGTH:
        logger.warning("Custom CSS truncated from %d characters", len(cleaned))
        cleaned = cleaned[:MAX_CSS_LENGTH]

    safe: list[str] = []
    for chunk in re.split(r"[;\n]", cleaned):
        declaration = chunk.strip().strip("{}").strip()
        if not declaration or ":" not in declaration:
            continue
        prop, _, value = declaration.partition(":")
        prop = prop.strip().lower()
        value = value.strip()
        if not value:
            continue
        if prop not in ALLOWED_PROPERTIES and not prop.startswith("--"):
            continue
        if _has_danger(f"{prop}:{value}"):
            logger.warning("Blocked CSS declaration for property %s", prop)
            continue
        safe.append(f"{prop}: {value}")
    return ";\n".join(safe)


def sanitize_url(url: str | None) -> str | None:
    """Return the URL when it is an absolute http(s) URL with a host."""
    if not url:
        return None
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return None
    return candidate


def is_valid_color(color: str | None) -> bool:
    if not color:
        return False
    value = color.strip().lower()
    return bool(HEX_COLOR.match(value) or RGB_COLOR.match(value) or HSL_COLOR.match(value))
