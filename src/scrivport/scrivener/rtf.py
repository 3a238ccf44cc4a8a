"""Reader for the RTF that Scrivener writes.

Produces run-length styled text (``Span``) plus a record of the rich-text
features that had to be dropped along the way. Only the character styles that
Markdown can carry are tracked: bold, italic, strikethrough and hyperlinks.
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass, field, replace

from .errors import RtfConversionFailedError

FEATURE_TABLE = "table"
FEATURE_IMAGE = "image"
FEATURE_FOOTNOTE = "footnote"
FEATURE_COMMENT = "comment"

DEFAULT_CODEPAGE = "cp1252"
COMMENT_LINK_SCHEME = "scrivcmt:"
INTERNAL_LINK_SCHEME = "scrivlnk:"

# Manual line break inside a paragraph. Unicode LINE SEPARATOR, so span
# whitespace handling treats it like a space.
LINE_BREAK = "\u2028"

_TOKEN = re.compile(
    r"\\(?P<word>[a-zA-Z]{1,32})(?P<param>-?\d{1,10})? ?"
    r"|\\'(?P<hex>[0-9a-fA-F]{2})"
    r"|\\(?P<symbol>.)"
    r"|(?P<brace>[{}])"
    r"|(?P<newline>[\r\n]+)"
    r"|(?P<text>[^\\{}\r\n]+)",
    re.DOTALL,
)

_HYPERLINK = re.compile(r'HYPERLINK\s+(?:"(?P<quoted>[^"]*)"|(?P<bare>\S+))')
_NUMBERED_MARKER = re.compile(r"\d+[.)]")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Destinations whose content never reaches the text.
_SKIPPED_DESTINATIONS = frozenset({
    "fonttbl", "colortbl", "stylesheet", "info", "listtable", "listoverridetable",
    "revtbl", "rsidtbl", "generator", "xmlnstbl", "themedata", "colorschememapping",
    "latentstyles", "datastore", "pgdsctbl", "expandedcolortbl", "nonshppict",
    "header", "headerl", "headerr", "headerf",
    "footer", "footerl", "footerr", "footerf",
})

# Destinations that carry content Markdown cannot represent.
_DROPPED_DESTINATIONS = {
    "pict": FEATURE_IMAGE,
    "shppict": FEATURE_IMAGE,
    "object": FEATURE_IMAGE,
    "NeXTGraphic": FEATURE_IMAGE,
    "footnote": FEATURE_FOOTNOTE,
    "annotation": FEATURE_COMMENT,
}

_TABLE_WORDS = frozenset({"trowd", "intbl", "cell", "row", "cellx", "nestcell", "nestrow"})

_CHARACTER_WORDS = {
    "par": "\n\n",
    "sect": "\n\n",
    "page": "\n\n",
    "line": LINE_BREAK,
    "row": "\n",
    "nestrow": "\n",
    "tab": "\t",
    "cell": " ",
    "nestcell": " ",
    "emdash": "\u2014",
    "endash": "\u2013",
    "bullet": "\u2022",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "emspace": " ",
    "enspace": " ",
    "qmspace": " ",
}

_CONTROL_SYMBOLS = {
    "~": " ",
    "_": "-",
    "-": "",
    "{": "{",
    "}": "}",
    "\\": "\\",
    "\n": "\n\n",
    "\r": "\n\n",
}

_CHARSET_CODEPAGES = {"ansi": "cp1252", "mac": "mac_roman", "pc": "cp437", "pca": "cp850"}


@dataclass(frozen=True)
class Style:
    bold: bool = False
    italic: bool = False
    strike: bool = False
    link: str | None = None

    @property
    def is_plain(self) -> bool:
        return self == Style()


@dataclass(frozen=True)
class Span:
    text: str
    style: Style = Style()


@dataclass
class AttributedText:
    spans: list[Span] = field(default_factory=list)
    features: set[str] = field(default_factory=set)

    @property
    def plain_text(self) -> str:
        return "".join(span.text for span in self.spans).replace(LINE_BREAK, "\n")


@dataclass
class _FieldInstruction:
    parts: list[str] = field(default_factory=list)


@dataclass
class _GroupState:
    style: Style = Style()
    skip: bool = False
    uc: int = 1
    hyperlink: _FieldInstruction | None = None
    in_instruction: bool = False
    list_marker: list[str] | None = None


def codec_for(codepage: int) -> str:
    """Python codec name for an RTF ``\\ansicpg`` value."""
    name = "mac_roman" if codepage == 10000 else f"cp{codepage}"
    try:
        codecs.lookup(name)
    except LookupError:
        return DEFAULT_CODEPAGE
    return name


def looks_like_rtf(data: bytes) -> bool:
    return data.lstrip(codecs.BOM_UTF8 + b" \t\r\n").startswith(b"{\\rtf")


def _hyperlink_target(instruction: str) -> str | None:
    match = _HYPERLINK.search(instruction)
    if match is None:
        return None
    target = (match.group("quoted") or match.group("bare") or "").strip()
    return target or None


class RtfReader:
    """Tokenize RTF and track group state to build styled spans.

    With ``strict`` set, a missing ``{\\rtf`` header or unbalanced braces raise
    ``RtfConversionFailedError``; otherwise the reader recovers as best it can.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def read(self, data: bytes) -> AttributedText:
        if data.startswith(codecs.BOM_UTF8):
            data = data[len(codecs.BOM_UTF8):]
        source = data.decode("latin-1")
        start = len(source) - len(source.lstrip())
        if not source.startswith("{\\rtf", start):
            raise RtfConversionFailedError("missing {\\rtf header")

        self._reset()
        pos = start
        while pos < len(source) and not self._finished:
            match = _TOKEN.match(source, pos)
            if match is None:
                pos += 1
                continue
            pos = match.end()
            word = match.group("word")
            if word == "bin":
                # raw binary payload follows, never text
                self._flush()
                pos += max(int(match.group("param") or 0), 0)
                continue
            self._dispatch(match)

        if not self._finished and self.strict:
            raise RtfConversionFailedError("unbalanced braces: document is truncated")
        self._flush()
        spans = [Span("".join(parts), style) for style, parts in self._runs if parts]
        return AttributedText(spans=[s for s in spans if s.text], features=self._features)

    # -- tokens -------------------------------------------------------------

    def _reset(self) -> None:
        self._state = _GroupState()
        self._stack: list[_GroupState] = []
        self._runs: list[tuple[Style, list[str]]] = []
        self._features: set[str] = set()
        self._pending = bytearray()
        self._codepage = DEFAULT_CODEPAGE
        self._uc_skip = 0
        self._star = False
        self._high_surrogate: int | None = None
        self._finished = False

    def _dispatch(self, match: re.Match) -> None:
        if match.group("hex") is not None:
            if self._uc_skip:
                self._uc_skip -= 1
            elif not self._state.skip:
                self._pending.append(int(match.group("hex"), 16))
            return
        if match.group("text") is not None:
            self._text(match.group("text"))
            return
        if match.group("newline") is not None:
            return

        self._flush()
        if match.group("brace") is not None:
            self._uc_skip = 0
            if match.group("brace") == "{":
                self._open_group()
            else:
                self._close_group()
            return

        if self._uc_skip:
            self._uc_skip -= 1
            return
        symbol = match.group("symbol")
        if symbol is not None:
            if symbol == "*":
                self._star = True
            elif symbol in _CONTROL_SYMBOLS:
                self._emit(_CONTROL_SYMBOLS[symbol])
            return
        param = match.group("param")
        self._control_word(match.group("word"), int(param) if param is not None else None)

    def _text(self, text: str) -> None:
        if self._uc_skip:
            consumed = min(self._uc_skip, len(text))
            self._uc_skip -= consumed
            text = text[consumed:]
        if text and not self._state.skip:
            self._pending.extend(text.encode("latin-1"))

    def _open_group(self) -> None:
        self._stack.append(self._state)
        self._state = replace(self._state)

    def _close_group(self) -> None:
        if not self._stack:
            if self.strict:
                raise RtfConversionFailedError("unbalanced braces: unexpected '}'")
            return
        closing = self._state
        self._state = self._stack.pop()
        if closing.list_marker is not None and self._state.list_marker is None:
            self._emit_list_marker("".join(closing.list_marker).strip())
        if not self._stack:
            self._finished = True

    def _control_word(self, word: str, param: int | None) -> None:
        state = self._state
        starred, self._star = self._star, False
        if state.skip:
            return
        if word in _DROPPED_DESTINATIONS:
            self._features.add(_DROPPED_DESTINATIONS[word])
            state.skip = True
            return
        if word in _SKIPPED_DESTINATIONS or (starred and word != "fldinst"):
            state.skip = True
            return

        if word in _TABLE_WORDS:
            self._features.add(FEATURE_TABLE)
        text = _CHARACTER_WORDS.get(word)
        if text is not None:
            self._emit(text)
            return

        on = param is None or param != 0
        if word == "b":
            state.style = replace(state.style, bold=on)
        elif word == "i":
            state.style = replace(state.style, italic=on)
        elif word in ("strike", "striked"):
            state.style = replace(state.style, strike=on)
        elif word == "plain":
            state.style = Style(link=state.style.link)
        elif word == "uc":
            state.uc = max(param if param is not None else 1, 0)
        elif word == "u" and param is not None:
            self._unicode(param)
        elif word == "ansicpg" and param is not None:
            self._codepage = codec_for(param)
        elif word in _CHARSET_CODEPAGES:
            self._codepage = _CHARSET_CODEPAGES[word]
        elif word == "field":
            state.hyperlink = _FieldInstruction()
        elif word == "fldinst":
            if state.hyperlink is None:
                state.hyperlink = _FieldInstruction()
            state.in_instruction = True
        elif word == "fldrslt":
            self._enter_field_result()
        elif word == "chftn":
            self._features.add(FEATURE_FOOTNOTE)
        elif word in ("listtext", "pntext"):
            state.list_marker = []

    def _unicode(self, code: int) -> None:
        if code < 0:
            code += 0x10000
        high, self._high_surrogate = self._high_surrogate, None
        if 0xD800 <= code <= 0xDBFF:
            self._high_surrogate = code
        elif 0xDC00 <= code <= 0xDFFF:
            if high is not None:
                self._emit(chr(0x10000 + ((high - 0xD800) << 10) + (code - 0xDC00)))
        else:
            self._emit(chr(code))
        self._uc_skip = self._state.uc

    def _enter_field_result(self) -> None:
        state = self._state
        state.in_instruction = False
        if state.hyperlink is None:
            return
        target = _hyperlink_target("".join(state.hyperlink.parts))
        if target is None:
            return
        if target.startswith((COMMENT_LINK_SCHEME, INTERNAL_LINK_SCHEME)):
            if target.startswith(COMMENT_LINK_SCHEME):
                self._features.add(FEATURE_COMMENT)
            state.style = replace(state.style, link=None)
        else:
            state.style = replace(state.style, link=target)

    # -- output -------------------------------------------------------------

    def _flush(self) -> None:
        if self._pending:
            text = bytes(self._pending).decode(self._codepage, errors="replace")
            self._pending.clear()
            self._emit(text)

    def _emit(self, text: str) -> None:
        state = self._state
        if state.skip or not text:
            return
        if state.in_instruction and state.hyperlink is not None:
            state.hyperlink.parts.append(text)
        elif state.list_marker is not None:
            state.list_marker.append(text)
        else:
            self._append(text, state.style)

    def _emit_list_marker(self, marker: str) -> None:
        if self._state.skip:
            return
        self._append(f"{marker} " if _NUMBERED_MARKER.fullmatch(marker) else "- ", Style())

    def _append(self, text: str, style: Style) -> None:
        if self._runs and self._runs[-1][0] == style:
            self._runs[-1][1].append(text)
        else:
            self._runs.append((style, [text]))


def read_rtf(data: bytes) -> AttributedText:
    """Strictly parse RTF bytes into styled spans."""
    return RtfReader(strict=True).read(data)


def plain_text_fallback(data: bytes) -> str:
    """Best-effort text from bytes that could not be converted.

    RTF input is read leniently with all formatting discarded; anything else is
    decoded as UTF-8 with replacement characters.
    """
    if looks_like_rtf(data):
        text = RtfReader(strict=False).read(data).plain_text
    else:
        text = data.decode("utf-8", errors="replace")
    return _CONTROL_CHARS.sub("", text)
