"""Jinja2 environment for sec_feed templates."""

from __future__ import annotations

from importlib import resources

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateSyntaxError,
)

DEFAULT_OUTPUT_FORMAT = """----
{{ title }}
{{ date }}
{{ summary }}
{{ link }}
----
"""

PAGE_TEMPLATE = "page.md.j2"

_ENV: Environment | None = None

_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "<": "\\u003C",
    ">": "\\u003E",
    "&": "\\u0026",
    "=": "\\u003D",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class TemplateConfigError(ValueError):
    """Raised when a user supplied template cannot be compiled."""


def _js_escape(value: object) -> str:
    """Escape a value for use inside a JavaScript or YAML quoted string."""
    return "".join(_JS_ESCAPES.get(char, char) for char in str(value))


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        _ENV.filters["js"] = _js_escape
    return _ENV


def compile_template(source: str) -> Template:
    """Compile an output format string, reporting syntax errors as config errors."""
    try:
        return get_environment().from_string(source)
    except TemplateSyntaxError as exc:
        raise TemplateConfigError(f"invalid output format: {exc}") from exc
