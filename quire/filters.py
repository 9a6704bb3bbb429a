"""Liquid and Jekyll filters for the Jinja environment.

Templates written for Jekyll call filters such as ``date_to_string`` or
``xml_escape``. Jinja has no equivalents, and a few filters that share a
name (``default``, ``sort``, ``map``, ``truncate``) behave differently in
Liquid, so those are replaced with Liquid-compatible versions here.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from email.utils import format_datetime
from typing import Any
from urllib.parse import quote, quote_plus

from jinja2 import Undefined
from markupsafe import escape

from .renderers import MarkdownConverter, highlight_code
from .utils import slugify as _slugify


def to_datetime(value: Any) -> datetime | None:
    """Coerce a template value into a datetime.

    Accepts datetimes, dates, the string ``"now"``/``"today"`` and ISO 8601
    strings. Returns None for anything else.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text in ("now", "today"):
            return datetime.now()
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def date_filter(value: Any, fmt: str = "%Y-%m-%d") -> Any:
    dt = to_datetime(value)
    if dt is None:
        return value
    return dt.strftime(fmt)


def date_to_string(value: Any) -> Any:
    """Format a date like ``10 Feb 2014``."""
    return date_filter(value, "%d %b %Y")


def date_to_long_string(value: Any) -> Any:
    """Format a date like ``10 February 2014``."""
    return date_filter(value, "%d %B %Y")


def date_to_xmlschema(value: Any) -> Any:
    """Format a date as RFC 3339, e.g. ``2014-02-10T00:00:00+00:00``."""
    dt = to_datetime(value)
    if dt is None:
        return value
    return _with_zone(dt).isoformat()


def date_to_rfc822(value: Any) -> Any:
    dt = to_datetime(value)
    if dt is None:
        return value
    return format_datetime(_with_zone(dt))


def _with_zone(dt: datetime) -> datetime:
    # Naive values are local time; feeds need an explicit offset.
    return dt.astimezone() if dt.tzinfo is None else dt


def xml_escape(value: Any) -> str:
    if value is None:
        return ""
    return str(escape(str(value)))


def cgi_escape(value: Any) -> str:
    return quote_plus(str(value))


def uri_escape(value: Any) -> str:
    return quote(str(value), safe="/:?&=#[]@!$'()*+,;~")


def strip_html(value: Any) -> str:
    return re.sub(r"<[^>]*>", "", str(value))


def strip_newlines(value: Any) -> str:
    return re.sub(r"\r?\n", "", str(value))


def newline_to_br(value: Any) -> str:
    return re.sub(r"\r?\n", "<br />\n", str(value))


def number_of_words(value: Any) -> int:
    return len(str(value).split())


def default(value: Any, fallback: Any = "") -> Any:
    """Return fallback when value is nil, false, empty or undefined."""
    if isinstance(value, Undefined) or value is None or value is False:
        return fallback
    if isinstance(value, (str, list, tuple, dict)) and not value:
        return fallback
    return value


def size(value: Any) -> int:
    try:
        return len(value)
    except TypeError:
        return 0


def append(value: Any, suffix: Any) -> str:
    return f"{value}{suffix}"


def prepend(value: Any, prefix: Any) -> str:
    return f"{prefix}{value}"


def remove(value: Any, text: Any) -> str:
    return str(value).replace(str(text), "")


def split(value: Any, sep: str) -> list[str]:
    return str(value).split(sep)


def strip(value: Any) -> str:
    return str(value).strip()


def truncate(value: Any, length: int = 50, ellipsis: str = "...") -> str:
    """Truncate to ``length`` characters, ellipsis included."""
    text = str(value)
    if len(text) <= length:
        return text
    keep = max(length - len(ellipsis), 0)
    return text[:keep] + ellipsis


def truncatewords(value: Any, count: int = 15, ellipsis: str = "...") -> str:
    words = str(value).split()
    if len(words) <= count:
        return " ".join(words)
    return " ".join(words[:count]) + ellipsis


def _lookup(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    value = getattr(item, key, None)
    if value is None:
        try:
            value = item[key]
        except (TypeError, LookupError):
            value = None
    return value


def sort(value: Iterable, key: str | None = None) -> list:
    """Sort a sequence, optionally by a property; missing values sort last."""
    items = list(value)
    if key is None:
        return sorted(items)
    present = [i for i in items if _lookup(i, key) is not None]
    missing = [i for i in items if _lookup(i, key) is None]
    return sorted(present, key=lambda i: _lookup(i, key)) + missing


def map_filter(value: Iterable, key: str) -> list:
    return [_lookup(item, key) for item in value]


def where(value: Iterable, key: str, target: Any) -> list:
    """Select items whose property equals target, or contains it if a list."""
    selected = []
    for item in value:
        prop = _lookup(item, key)
        if isinstance(prop, (list, tuple)):
            if target in prop:
                selected.append(item)
        elif prop == target or str(prop) == str(target):
            selected.append(item)
    return selected


def jsonify(value: Any) -> str:
    return json.dumps(value, default=str)


def plus(value: Any, other: Any) -> Any:
    return _number(value) + _number(other)


def minus(value: Any, other: Any) -> Any:
    return _number(value) - _number(other)


def times(value: Any, other: Any) -> Any:
    return _number(value) * _number(other)


def divided_by(value: Any, other: Any) -> Any:
    left, right = _number(value), _number(other)
    if isinstance(left, int) and isinstance(right, int):
        return left // right
    return left / right


def _number(value: Any) -> int | float:
    if isinstance(value, (int, float)):
        return value
    text = str(value)
    try:
        return int(text)
    except ValueError:
        return float(text)


def _join_url(base: str, path: Any) -> str:
    path = str(path or "")
    if path.startswith(("http://", "https://", "//")):
        return path
    if path and not path.startswith("/"):
        path = f"/{path}"
    return f"{base.rstrip('/')}{path}" or "/"


def install_filters(env, config: dict[str, Any], markdown: MarkdownConverter) -> None:
    """Register the Liquid filter set on a Jinja environment.

    Args:
        env: Jinja environment to extend.
        config: Site configuration, used for ``relative_url``/``absolute_url``.
        markdown: Converter used by ``markdownify``.
    """
    baseurl = str(config.get("baseurl") or "")
    site_url = str(config.get("url") or "")

    filters: dict[str, Callable] = {
        "date": date_filter,
        "date_to_string": date_to_string,
        "date_to_long_string": date_to_long_string,
        "date_to_xmlschema": date_to_xmlschema,
        "date_to_rfc822": date_to_rfc822,
        "xml_escape": xml_escape,
        "escape": xml_escape,
        "cgi_escape": cgi_escape,
        "uri_escape": uri_escape,
        "url_encode": cgi_escape,
        "strip_html": strip_html,
        "strip_newlines": strip_newlines,
        "newline_to_br": newline_to_br,
        "number_of_words": number_of_words,
        "size": size,
        "default": default,
        "downcase": lambda v: str(v).lower(),
        "upcase": lambda v: str(v).upper(),
        "append": append,
        "prepend": prepend,
        "remove": remove,
        "split": split,
        "strip": strip,
        "truncate": truncate,
        "truncatewords": truncatewords,
        "sort": sort,
        "map": map_filter,
        "where": where,
        "jsonify": jsonify,
        "plus": plus,
        "minus": minus,
        "times": times,
        "divided_by": divided_by,
        "slugify": lambda v: _slugify(str(v)),
        "markdownify": lambda v: markdown(str(v)),
        "highlight": lambda code, lang="": highlight_code(str(code), lang or None),
        "relative_url": lambda v: _join_url(baseurl, v),
        "absolute_url": lambda v: _join_url(site_url + baseurl, v),
    }
    env.filters.update(filters)
