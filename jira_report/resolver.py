"""Attachment and link resolution for rendered issue bodies.

Functions:
    resolve_attachments(html, attachments)     -> str
    absolutize_image_sources(html, base_url)   -> str
    resolve_body(html, attachments, base_url)  -> str
    extract_related_keys(links, link_type)     -> list[str]
    rewrite_issue_anchors(html, known_keys)    -> str

All rewriting is a text-level transform restricted to ``<img>`` sources and
links to other issues; the rest of the markup is passed through untouched.
"""

import re
from typing import Any, Callable, Iterable
from urllib.parse import urlsplit

PLACEHOLDER_BODY = "<i>No description available</i>"

_IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_SRC_ATTR_RE = re.compile(r"""((?<![\w-])src\s*=\s*)(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL)
_ISSUE_KEY = r"[A-Za-z][A-Za-z0-9_]*-\d+"
_ANCHOR_RE = re.compile(r"<a\s+(?P<attrs>[^>]*)>(?P<inner>.*?)</a>", re.IGNORECASE | re.DOTALL)
_ISSUE_LINK_CLASS_RE = re.compile(r"""(?<![\w-])class\s*=\s*["'][^"']*\bissue-link\b""", re.IGNORECASE)
_DATA_KEY_RE = re.compile(
    rf"""(?<![\w-])data-(?:issue-)?key\s*=\s*["'](?P<key>{_ISSUE_KEY})["']""", re.IGNORECASE
)
_BROWSE_HREF_RE = re.compile(
    rf"""(?<![\w-])href\s*=\s*["'][^"']*/browse/(?P<key>{_ISSUE_KEY})["']""", re.IGNORECASE
)


# ---------------------------------------------------------------------------
# Image sources
# ---------------------------------------------------------------------------

def _rewrite_img_sources(html: str, rewrite: Callable[[str], str | None]) -> str:
    """Apply *rewrite* to the ``src`` of every ``<img>`` tag.

    *rewrite* returns the new source, or None to leave the tag as it is.
    """
    def _replace_src(match: re.Match) -> str:
        prefix, quote, src = match.group(1), match.group(2), match.group(3)
        new_src = rewrite(src)
        if new_src is None:
            return match.group(0)
        return f"{prefix}{quote}{new_src}{quote}"

    def _replace_tag(match: re.Match) -> str:
        # Only the first src attribute of a tag is considered
        return _SRC_ATTR_RE.sub(_replace_src, match.group(0), count=1)

    return _IMG_TAG_RE.sub(_replace_tag, html)


def resolve_attachments(html: str, attachments: dict[str, str]) -> str:
    """Replace image sources that name an attachment with its content URL.

    Matching is exact on the whole source and case-insensitive; a filename
    that only appears as part of a longer source is left alone.
    """
    if not html or not attachments:
        return html
    by_name = {name.lower(): url for name, url in attachments.items() if name}
    return _rewrite_img_sources(html, lambda src: by_name.get(src.strip().lower()))


def absolutize_image_sources(html: str, base_url: str) -> str:
    """Prefix host-relative image sources (``/secure/...``) with the base host."""
    if not html or not base_url:
        return html
    parts = urlsplit(base_url)
    host = f"{parts.scheme}://{parts.netloc}" if parts.netloc else base_url.rstrip("/")

    def _absolutize(src: str) -> str | None:
        # "//cdn.example.com/x.png" is protocol-relative, i.e. already external
        if src.startswith("/") and not src.startswith("//"):
            return f"{host}{src}"
        return None

    return _rewrite_img_sources(html, _absolutize)


def resolve_body(html: str | None, attachments: dict[str, str], base_url: str) -> str:
    """Return the rendered body with attachments and relative images resolved.

    An empty body is replaced by PLACEHOLDER_BODY.
    """
    if not html or not html.strip():
        return PLACEHOLDER_BODY
    html = resolve_attachments(html, attachments)
    return absolutize_image_sources(html, base_url)


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

def extract_related_keys(links: Iterable[dict[str, Any]], link_type: str) -> list[str]:
    """Return the keys at the other end of every link of type *link_type*.

    The link type name is compared case-insensitively and both inward and
    outward links count. Duplicates are dropped, first occurrence wins.
    Malformed entries are skipped.
    """
    wanted = link_type.lower()
    keys: list[str] = []
    seen: set[str] = set()

    for link in links or []:
        if not isinstance(link, dict):
            continue
        link_kind = link.get("type")
        type_name = link_kind.get("name") if isinstance(link_kind, dict) else None
        if not isinstance(type_name, str) or type_name.lower() != wanted:
            continue
        other = link.get("outwardIssue") or link.get("inwardIssue")
        key = other.get("key") if isinstance(other, dict) else None
        if isinstance(key, str) and key and key.lower() not in seen:
            seen.add(key.lower())
            keys.append(key)

    return keys


def _anchor_key(attrs: str) -> str | None:
    """Issue key an anchor points at, from ``data-key`` or a browse URL."""
    if _ISSUE_LINK_CLASS_RE.search(attrs):
        match = _DATA_KEY_RE.search(attrs)
        if match:
            return match.group("key")
    match = _BROWSE_HREF_RE.search(attrs)
    return match.group("key") if match else None


def rewrite_issue_anchors(html: str, known_keys: Iterable[str]) -> str:
    """Point links to other issues at the report's own anchors.

    Two link forms are recognised: ``<a class="issue-link" data-key="KEY">``
    (or ``data-issue-key``) and ``<a href=".../browse/KEY">``. Only keys
    present in *known_keys* are rewritten; links to issues outside the
    report keep their original target.
    """
    if not html:
        return html
    known = set(known_keys)

    def _replace(match: re.Match) -> str:
        key = _anchor_key(match.group("attrs"))
        if key is None or key not in known:
            return match.group(0)
        return f"<a href=\"#issue-{key}\">{match.group('inner')}</a>"

    return _ANCHOR_RE.sub(_replace, html)
