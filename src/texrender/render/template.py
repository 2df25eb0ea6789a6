"""Jinja2-based compile-input template for LaTeX fragments."""

from __future__ import annotations

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

STYLE_DIRECTIVE = "%css%"

_DOCUMENT_TEMPLATE = "\\documentclass[varwidth]{standalone}\n{{ preamble }}{{ source }}"

_jinja_env = SandboxedEnvironment(
    autoescape=False,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)
_template = _jinja_env.from_string(_DOCUMENT_TEMPLATE)


def format_source(source: str, preamble: str = "") -> str:
    """Wrap a fragment in the standalone document class plus user preamble.

    The fragment is passed as a template variable, so braces in the LaTeX
    are never interpreted by Jinja.
    """
    return _template.render(preamble=preamble, source=source)


def extract_style(source: str) -> str:
    """Collect the inline CSS carried by ``%css%`` directive lines."""
    styles: list[str] = []
    for line in source.split("\n"):
        if line.startswith(STYLE_DIRECTIVE):
            styles.append(line[len(STYLE_DIRECTIVE):])
    return "".join(styles)


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
</head>
<body>
{% for fragment in fragments %}{{ fragment|safe }}
{% endfor %}</body>
</html>
"""

_page_env = SandboxedEnvironment(autoescape=True, keep_trailing_newline=True)
_page_template = _page_env.from_string(_PAGE_TEMPLATE)


def render_page(title: str, fragments: list[str]) -> str:
    """Standalone HTML page embedding already rendered block fragments."""
    return _page_template.render(title=title, fragments=fragments)
