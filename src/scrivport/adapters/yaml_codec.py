import io
import re
from datetime import date, datetime
from typing import Any

import yaml

_FM = re.compile(r"^\s*---\s*\n(.*?)\n---\s*\n?", re.DOTALL)


def _plain(value: Any) -> Any:
    """Reduce values to what yaml.safe_dump accepts, dropping empties."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items() if v not in (None, "", [], {})}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class YamlFrontmatter:
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        fm = yaml.safe_load(io.StringIO(m.group(1))) or {}
        body = text[m.end() :]
        return (fm, body)

    def encode(self, meta: dict[str, Any]) -> str:
        meta = _plain(meta)
        if not meta:
            return ""
        return f"---\n{self.dump(meta)}---\n"

    def dump(self, data: dict[str, Any]) -> str:
        buf = io.StringIO()
        yaml.safe_dump(_plain(data), buf, sort_keys=False, allow_unicode=True)
        return buf.getvalue()


class MarkdownDocumentCodec:
    """Frontmatter block followed by the Markdown body."""

    def __init__(self, fm: YamlFrontmatter):
        self.fm = fm

    def encode_file(self, meta: dict[str, Any], body: str) -> str:
        text = self.fm.encode(meta)
        if body:
            text += ("\n" if text else "") + body.rstrip("\n") + "\n"
        return text

    def decode_file(self, text: str) -> tuple[dict[str, Any], str]:
        meta, body = self.fm.decode(text)
        return meta, body.lstrip("\n")
