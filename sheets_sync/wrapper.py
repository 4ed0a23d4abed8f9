"""Detect bare HTML fragments and wrap them into standalone documents."""

from __future__ import annotations

import re

_FULL_DOC_RES = (
    re.compile(r"<html[\s>]", re.IGNORECASE),
    re.compile(r"<!doctype\s+html", re.IGNORECASE),
)

BASE_STYLES = """
  <style>
    body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif; margin: 24px; line-height: 1.45; }
    h1,h2,h3,h4 { margin: 0.9em 0 0.4em; }
    p { margin: 0.5em 0; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border: 1px solid #ddd; padding: 8px 10px; vertical-align: top; }
    ul, ol { padding-left: 1.4em; }
    img, video, iframe { max-width: 100%; height: auto; }
    a { word-break: break-word; }
  </style>"""

_SHELL = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{title}</title>{styles}
</head>
<body>
{body}
</body>
</html>"""


def escape_html(value: object) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"``. Single quotes are left alone."""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def is_full_document(html: str) -> bool:
    """Return True if ``html`` has an ``<html>`` root tag or an HTML doctype."""
    return any(rx.search(html) for rx in _FULL_DOC_RES)


def wrap_if_fragment(
    html: str | None,
    *,
    title: str | None = None,
    include_base_styles: bool = False,
) -> str:
    """Return full documents unchanged; wrap fragments in a minimal shell.

    Args:
        html: Document or fragment. None is treated as an empty fragment.
        title: Text for ``<title>``; defaults to "Document".
        include_base_styles: Embed the default stylesheet.
    """
    s = html or ""
    if is_full_document(s):
        return s

    return _SHELL.format(
        title=escape_html(title or "Document"),
        styles=BASE_STYLES if include_base_styles else "",
        body=s.strip(),
    )
