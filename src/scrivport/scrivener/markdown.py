"""Styled spans to Markdown.

Delimiters are emitted on style transitions rather than per span, so adjacent
runs sharing a style end up inside a single pair. Within a line, markers are
nested so that the one that stays active longest is opened outermost.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import RtfConversionFailedError
from .rtf import LINE_BREAK, AttributedText, Span, Style, read_rtf

_ESCAPE = re.compile(r"([\\`*_\[\]])")
_BLANK_RUNS = re.compile(r"\n{3,}")
_LEADING_WS = re.compile(r"^[ \t]+", re.MULTILINE)
_TRAILING_WS = re.compile(r"[ \t]+$", re.MULTILINE)

# Outermost first when two markers stay open for the same number of runs.
_MARKER_ORDER = {"link": 0, "strike": 1, "bold": 2, "italic": 3}

# Delimiters for a marker opened directly after a closing "*" run; the two
# runs must not touch.
_ALTERNATE_OPENING = {"bold": "__", "italic": "_"}
HARD_BREAK = "\\\n"


@dataclass(frozen=True)
class _Marker:
    kind: str
    url: str | None = None

    @property
    def opening(self) -> str:
        return {"link": "[", "strike": "~~", "bold": "**", "italic": "*"}[self.kind]

    @property
    def closing(self) -> str:
        if self.kind == "link":
            url = self.url or ""
            if any(c in url for c in " ()<>"):
                url = f"<{url}>"
            return f"]({url})"
        return self.opening


@dataclass(frozen=True)
class _Token:
    kind: str  # "text" | "open" | "close"
    text: str = ""
    marker: _Marker | None = None


def _markers(style: Style) -> set[_Marker]:
    markers = set()
    if style.link:
        markers.add(_Marker("link", style.link))
    if style.strike:
        markers.add(_Marker("strike"))
    if style.bold:
        markers.add(_Marker("bold"))
    if style.italic:
        markers.add(_Marker("italic"))
    return markers


def escape_text(text: str) -> str:
    return _ESCAPE.sub(r"\\\1", text)


def _split_lines(spans: list[Span]) -> list[list[Span]]:
    lines: list[list[Span]] = [[]]
    for span in spans:
        pieces = span.text.split("\n")
        for n, piece in enumerate(pieces):
            if n:
                lines.append([])
            if piece:
                lines[-1].append(Span(piece, span.style))
    return lines


def _duration(marker: _Marker, runs: list[tuple[str, str, str, set[_Marker]]], start: int) -> int:
    """Number of consecutive text-bearing runs from ``start`` carrying ``marker``."""
    count = 0
    for _, core, _, markers in runs[start:]:
        if not core:
            continue
        if marker not in markers:
            break
        count += 1
    return count


def _line_tokens(line: list[Span]) -> list[_Token]:
    runs = []
    for span in line:
        core = span.text.strip()
        if not core:
            runs.append((span.text, "", "", set()))
            continue
        lead = span.text[: len(span.text) - len(span.text.lstrip())]
        trail = span.text[len(span.text.rstrip()):]
        runs.append((lead, core, trail, _markers(span.style)))

    tokens: list[_Token] = []
    stack: list[_Marker] = []
    pending_ws = ""
    for index, (lead, core, trail, wanted) in enumerate(runs):
        if not core:
            # whitespace never changes the open delimiters
            pending_ws += lead
            continue
        cut = next((n for n, m in enumerate(stack) if m not in wanted), len(stack))
        for marker in reversed(stack[cut:]):
            tokens.append(_Token("close", marker=marker))
        stack = stack[:cut]
        if pending_ws or lead:
            tokens.append(_Token("text", pending_ws + lead))
        opening = sorted(
            (m for m in wanted if m not in stack),
            key=lambda m: (-_duration(m, runs, index), _MARKER_ORDER[m.kind]),
        )
        for marker in opening:
            tokens.append(_Token("open", marker=marker))
        stack.extend(opening)
        tokens.append(_Token("text", escape_text(core)))
        pending_ws = trail
    for marker in reversed(stack):
        tokens.append(_Token("close", marker=marker))
    if pending_ws:
        tokens.append(_Token("text", pending_ws))
    return tokens


def collapse_delimiters(tokens: list[_Token]) -> list[_Token]:
    """Drop empty delimiter pairs and rejoin a close immediately reopened."""
    out: list[_Token] = []
    for token in tokens:
        if out and token.kind in ("open", "close") and out[-1].kind in ("open", "close"):
            previous = out[-1]
            if previous.marker == token.marker and previous.kind != token.kind:
                out.pop()
                continue
        out.append(token)
    return out


def _render(tokens: list[_Token]) -> str:
    parts: list[str] = []
    alternates: dict[_Marker, str] = {}
    previous: _Token | None = None
    for token in tokens:
        if token.kind == "text":
            parts.append(token.text)
        elif token.kind == "open":
            delimiter = token.marker.opening
            if (
                previous is not None
                and previous.kind == "close"
                and parts[-1].endswith("*")
                and token.marker.kind in _ALTERNATE_OPENING
            ):
                delimiter = _ALTERNATE_OPENING[token.marker.kind]
                alternates[token.marker] = delimiter
            parts.append(delimiter)
        else:
            parts.append(alternates.pop(token.marker, token.marker.closing))
        previous = token
    return "".join(parts)


def normalize_markdown(text: str) -> str:
    """One blank line between paragraphs, no stray whitespace at line edges."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_WS.sub("", text)
    text = _LEADING_WS.sub("", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip("\n")


def spans_to_markdown(spans: list[Span]) -> str:
    lines = [_render(collapse_delimiters(_line_tokens(line))) for line in _split_lines(spans)]
    # a break at either edge of a paragraph line has nothing to separate
    lines = [line.strip(" \t" + LINE_BREAK).replace(LINE_BREAK, HARD_BREAK) for line in lines]
    return normalize_markdown("\n".join(lines))


@dataclass
class Conversion:
    markdown: str
    dropped_features: set[str] = field(default_factory=set)


class RtfToMarkdownConverter:
    """Convert RTF bytes to Markdown.

    Raises ``RtfConversionFailedError`` when the bytes are not readable RTF;
    callers decide whether to fall back to plain text.
    """

    def convert(self, data: bytes) -> str:
        return self.convert_with_report(data).markdown

    def convert_with_report(self, data: bytes) -> Conversion:
        if not data.strip():
            return Conversion(markdown="")
        document: AttributedText = read_rtf(data)
        try:
            markdown = spans_to_markdown(document.spans)
        except (ValueError, KeyError) as e:
            raise RtfConversionFailedError(str(e)) from e
        return Conversion(markdown=markdown, dropped_features=set(document.features))
