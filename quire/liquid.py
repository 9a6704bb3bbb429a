"""Liquid template support on top of Jinja2.

The blog's pages, layouts and includes are written in Liquid, the template
language Jekyll uses. Liquid and Jinja2 share most of their surface syntax,
so rather than interpreting Liquid directly this module rewrites the parts
that differ and lets Jinja2 compile the result.

Rewritten constructs:

- ``{{ value | filter: arg1, arg2 }}`` becomes ``{{ value | filter(arg1, arg2) }}``
- ``{% assign x = y %}`` / ``{% capture x %}`` become ``set`` statements
- ``{% unless c %}`` becomes ``{% if not (c) %}``; ``elsif`` becomes ``elif``
- ``{% case %}``/``{% when %}`` become an ``if``/``elif`` chain
- ``{% for x in xs limit:2 offset:1 reversed %}`` becomes a sliced loop
- ``(1..n)`` ranges, ``forloop.*``, ``nil`` and ``a contains b``
- ``{% include name.html key=value %}`` (parameters exposed as ``include.key``)
- ``{% highlight lang %}`` blocks and ``{% comment %}`` blocks

``{% raw %}`` blocks pass through untouched. The ``size``, ``first`` and
``last`` properties are resolved at render time by
:class:`LiquidEnvironment`.
"""

from __future__ import annotations

import re
from collections.abc import Container, Mapping, Sequence
from typing import Any

from jinja2 import Environment, FileSystemLoader, Undefined

_RAW_RE = re.compile(r"(\{%-?\s*raw\s*-?%\}.*?\{%-?\s*endraw\s*-?%\})", re.DOTALL)
_COMMENT_RE = re.compile(
    r"\{%-?\s*comment\s*-?%\}.*?\{%-?\s*endcomment\s*-?%\}", re.DOTALL
)
_TAG_RE = re.compile(r"(\{%-?)(.*?)(-?%\})|(\{\{-?)(.*?)(-?\}\})", re.DOTALL)
_STRING_RE = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')")
_OPERAND = r"(?:\"[^\"]*\"|'[^']*'|[\w.\[\]]+)"
_CONTAINS_RE = re.compile(rf"({_OPERAND})\s+contains\s+({_OPERAND})")
_RANGE_RE = re.compile(r"\(\s*([\w.]+)\s*\.\.\s*([\w.]+)\s*\)")
_FOR_RE = re.compile(r"^(\w+)\s+in\s+(.+?)((?:\s+(?:reversed|limit\s*:\s*\S+|offset\s*:\s*\S+))*)$", re.DOTALL)
_FOR_OPTION_RE = re.compile(r"(reversed)|(limit|offset)\s*:\s*(\S+)")
_INCLUDE_PARAM_RE = re.compile(r"(\w+)\s*=\s*(\"[^\"]*\"|'[^']*'|[\w.\[\]]+)")

_FORLOOP_MAP = {
    "rindex0": "revindex0",
    "rindex": "revindex",
}

_CASE_VAR = "_liquid_case"


def translate(source: str) -> str:
    """Rewrite Liquid template source into equivalent Jinja2 source.

    Line breaks are preserved so Jinja error line numbers still point at the
    original file.
    """
    parts = _RAW_RE.split(source)
    out: list[str] = []
    for index, part in enumerate(parts):
        if index % 2:
            out.append(part)
            continue
        part = _COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), part)
        out.append(_TAG_RE.sub(_translate_tag, part))
    return "".join(out)


def strip_unrendered(source: str) -> str:
    """Remove raw and comment blocks, leaving only the markup Liquid evaluates."""
    return _COMMENT_RE.sub("", _RAW_RE.sub("", source))


def _translate_tag(match: re.Match) -> str:
    if match.group(1) is not None:
        return _translate_statement(match.group(1), match.group(2), match.group(3))
    return f"{match.group(4)} {translate_expression(match.group(5).strip())} {match.group(6)}"


def _translate_statement(open_: str, inner: str, close: str) -> str:
    stripped = inner.strip()
    words = stripped.split(None, 1)
    keyword = words[0] if words else ""
    rest = words[1].strip() if len(words) > 1 else ""

    def tag(body: str) -> str:
        return f"{open_} {body} {close}"

    if keyword == "assign":
        name, _, expr = rest.partition("=")
        return tag(f"set {name.strip()} = {translate_expression(expr.strip())}")
    if keyword == "capture":
        return tag(f"set {rest}")
    if keyword == "endcapture":
        return tag("endset")
    if keyword == "unless":
        return tag(f"if not ({translate_expression(rest)})")
    if keyword == "endunless":
        return tag("endif")
    if keyword == "elsif":
        return tag(f"elif {translate_expression(rest)}")
    if keyword in ("if", "elif"):
        return tag(f"{keyword} {translate_expression(rest)}")
    if keyword == "case":
        return tag(f"set {_CASE_VAR} = {translate_expression(rest)}") + tag("if false")
    if keyword == "when":
        values = [translate_expression(v) for v in _split_when_values(rest)]
        return tag(f"elif {_CASE_VAR} in ({', '.join(values)},)")
    if keyword == "endcase":
        return tag("endif")
    if keyword == "for":
        return tag(_translate_for(rest))
    if keyword == "include":
        return _translate_include(open_, rest, close)
    if keyword == "highlight":
        lang = rest.split()[0] if rest else ""
        return tag(f'filter highlight("{lang}")')
    if keyword == "endhighlight":
        return tag("endfilter")
    return tag(stripped)


def _translate_for(rest: str) -> str:
    match = _FOR_RE.match(rest)
    if not match:
        return f"for {rest}"
    var, collection, options = match.groups()
    seq = translate_expression(collection.strip())
    limit = offset = None
    reverse = False
    for opt in _FOR_OPTION_RE.finditer(options or ""):
        if opt.group(1):
            reverse = True
        elif opt.group(2) == "limit":
            limit = translate_expression(opt.group(3))
        else:
            offset = translate_expression(opt.group(3))
    if limit is not None or offset is not None:
        start = offset or "0"
        stop = f"{start} + {limit}" if limit is not None else ""
        seq = f"(({seq})|list)[{start}:{stop}]"
    if reverse:
        seq = f"(({seq})|reverse|list)"
    return f"for {var} in {seq}"


def _translate_include(open_: str, rest: str, close: str) -> str:
    words = rest.split(None, 1)
    name = words[0] if words else '""'
    params = words[1] if len(words) > 1 else ""
    if not (name.startswith('"') or name.startswith("'")):
        name = f'"{name}"'
    include_tag = f"{open_} include {name} {close}"
    pairs = _INCLUDE_PARAM_RE.findall(params)
    if not pairs:
        return include_tag
    mapping = ", ".join(f'"{key}": {translate_expression(value)}' for key, value in pairs)
    return (
        f"{open_} with include = {{{mapping}}} {close}"
        f"{include_tag}"
        f"{open_} endwith {close}"
    )


def _split_when_values(rest: str) -> list[str]:
    """Split ``when`` values on commas and ``or``, leaving string literals whole."""
    values: list[str] = []
    current = ""
    for index, piece in enumerate(_STRING_RE.split(rest)):
        if index % 2:
            current += piece
            continue
        parts = re.split(r",|\bor\b", piece)
        current += parts[0]
        for part in parts[1:]:
            values.append(current)
            current = part
    values.append(current)
    return [value.strip() for value in values if value.strip()]


def translate_expression(expr: str) -> str:
    """Rewrite a single Liquid expression (with filters) into Jinja2 syntax."""
    expr = _CONTAINS_RE.sub(r"\1 is contains(\2)", expr)
    expr = _RANGE_RE.sub(r"range(\1, (\2) + 1)", expr)
    expr = _map_code(expr, _rewrite_names)
    return _translate_filters(expr)


def _map_code(expr: str, fn) -> str:
    """Apply fn to the parts of expr that are not string literals."""
    pieces = _STRING_RE.split(expr)
    return "".join(p if i % 2 else fn(p) for i, p in enumerate(pieces))


def _rewrite_names(code: str) -> str:
    code = re.sub(r"\bnil\b|\bnull\b", "none", code)
    return re.sub(
        r"\bforloop\.(\w+)",
        lambda m: f"loop.{_FORLOOP_MAP.get(m.group(1), m.group(1))}",
        code,
    )


def _split_outside_strings(expr: str, sep: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quote = ""
    for char in expr:
        if quote:
            current.append(char)
            if char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char == sep:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _translate_filters(expr: str) -> str:
    pieces = _split_outside_strings(expr, "|")
    out = pieces[0].strip()
    for piece in pieces[1:]:
        name, sep, args = piece.partition(":")
        name = name.strip()
        if sep:
            out += f" | {name}({args.strip()})"
        else:
            out += f" | {name}"
    return out


class LiquidEnvironment(Environment):
    """Jinja environment resolving Liquid's ``size``/``first``/``last``.

    Liquid lets templates write ``page.tags.size`` or ``site.posts.first``;
    in Jinja those are attribute lookups that fail on plain lists, so they
    are resolved here when the regular lookup comes back undefined.

    ``nil`` prints as an empty string, and the ``contains`` test backs the
    Liquid operator of the same name.
    """

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("finalize", _liquid_output)
        super().__init__(**kwargs)
        self.tests["contains"] = liquid_contains

    def getattr(self, obj: Any, attribute: str) -> Any:
        value = super().getattr(obj, attribute)
        if isinstance(value, Undefined) and attribute in ("size", "first", "last"):
            return _liquid_property(obj, attribute, value)
        return value


def _liquid_output(value: Any) -> Any:
    return "" if value is None else value


def liquid_contains(value: Any, item: Any) -> bool:
    """Liquid ``contains``: substring for strings, membership otherwise, false for nil."""
    if value is None or isinstance(value, Undefined):
        return False
    if isinstance(value, str):
        return str(item) in value
    if isinstance(value, Container):
        return item in value
    return False


def _liquid_property(obj: Any, attribute: str, default: Any) -> Any:
    if isinstance(obj, Mapping):
        items = list(obj.items())
    elif isinstance(obj, (str, Sequence)):
        items = obj
    elif hasattr(obj, "__len__") and hasattr(obj, "__iter__"):
        items = list(obj)
    else:
        return default
    if attribute == "size":
        return len(items)
    if not len(items):
        return default
    return items[0] if attribute == "first" else items[-1]


class LiquidLoader(FileSystemLoader):
    """FileSystemLoader that translates Liquid includes on load."""

    def get_source(self, environment, template):
        source, filename, uptodate = super().get_source(environment, template)
        return translate(source), filename, uptodate
