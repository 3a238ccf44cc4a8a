"""Shared fixtures: synthesize Scrivener bundles under tmp_path."""

from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

import pytest

RTF_HEADER = (
    "{\\rtf1\\ansi\\ansicpg1252\\cocoartf2639\n"
    "{\\fonttbl\\f0\\fswiss\\fcharset0 Helvetica;}\n"
    "{\\colortbl;\\red255\\green255\\blue255;}\n"
    "\\pard\\tx720\\pardirnatural\\partightenfactor0\n\\f0\\fs24 \\cf0 "
)


def rtf(body: str) -> bytes:
    """Wrap an RTF body in a Cocoa-style document."""
    return (RTF_HEADER + body + "}").encode("latin-1")


class BundleBuilder:
    """Collects binder items, tables and files, then writes a .scriv bundle."""

    def __init__(self, root: Path, title: str = "My Novel", layout: str = "v3", version: str = "2.0"):
        self.root = root
        self.title = title
        self.layout = layout
        self.version = version
        self.labels: list[tuple[int, str, str]] = []
        self.statuses: list[tuple[int, str]] = []
        self.keywords: list[tuple[int, str]] = []
        self.targets: str | None = None
        self.files: dict[Path, bytes] = {}
        self._next_id = 10

    def item(self, title: str, type: str = "Text", children=(), id: int | None = None, **meta) -> dict:
        if id is None:
            self._next_id += 1
            id = self._next_id
        return {
            "id": id,
            "uuid": f"UUID-{id}",
            "title": title,
            "type": type,
            "children": list(children),
            "meta": meta,
        }

    def draft(self, *children, title: str = "Draft") -> dict:
        return self.item(title, "DraftFolder", children, id=0)

    def research(self, *children) -> dict:
        return self.item("Research", "ResearchFolder", children, id=1)

    def trash(self, *children) -> dict:
        return self.item("Trash", "TrashFolder", children, id=2)

    def label(self, id: int, name: str, color: str = "1.0 0.0 0.0") -> None:
        self.labels.append((id, name, color))

    def status(self, id: int, name: str) -> None:
        self.statuses.append((id, name))

    def keyword(self, id: int, name: str) -> None:
        self.keywords.append((id, name))

    def _item_dir(self, node: dict) -> Path:
        if self.layout == "v3":
            return self.root / "Files" / "Data" / node["uuid"]
        return self.root / "Files" / "Docs"

    def content(self, node: dict, data: bytes | str) -> None:
        data = rtf(data) if isinstance(data, str) else data
        if self.layout == "v3":
            self.files[self._item_dir(node) / "content.rtf"] = data
        else:
            self.files[self._item_dir(node) / f"{node['id']}.rtf"] = data

    def notes(self, node: dict, data: bytes | str) -> None:
        data = rtf(data) if isinstance(data, str) else data
        name = "notes.rtf" if self.layout == "v3" else f"{node['id']}_notes.rtf"
        self.files[self._item_dir(node) / name] = data

    def synopsis(self, node: dict, text: str) -> None:
        name = "synopsis.txt" if self.layout == "v3" else f"{node['id']}_synopsis.txt"
        self.files[self._item_dir(node) / name] = text.encode("utf-8")

    def history(self, *days: str, location: str = "Files") -> None:
        body = "\n".join(days)
        path = self.root / location / "writing.history" if location else self.root / "writing.history"
        self.files[path] = f'<?xml version="1.0" encoding="UTF-8"?>\n<WritingHistory>\n{body}\n</WritingHistory>\n'.encode()

    def _item_xml(self, node: dict) -> str:
        meta = node["meta"]
        parts = [
            f'<BinderItem UUID={quoteattr(node["uuid"])} ID="{node["id"]}" Type={quoteattr(node["type"])} '
            f'Created="2024-01-05 10:00:00 +0000" Modified="2024-02-01 12:30:00 +0000">',
            f"<Title>{escape(node['title'])}</Title>",
        ]
        if "synopsis" in meta:
            parts.append(f"<Synopsis>{escape(meta['synopsis'])}</Synopsis>")
        md = []
        if "label" in meta:
            md.append(f"<LabelID>{meta['label']}</LabelID>")
        if "status" in meta:
            md.append(f"<StatusID>{meta['status']}</StatusID>")
        if "include" in meta:
            md.append(f"<IncludeInCompile>{'Yes' if meta['include'] else 'No'}</IncludeInCompile>")
        if "icon" in meta:
            md.append(f"<IconFileName>{escape(meta['icon'])}</IconFileName>")
        if "target" in meta:
            md.append(f'<Target Type="Words">{meta["target"]}</Target>')
        if md:
            parts.append("<MetaData>" + "".join(md) + "</MetaData>")
        if "keywords" in meta:
            ids = "".join(f"<KeywordID>{k}</KeywordID>" for k in meta["keywords"])
            parts.append(f"<Keywords>{ids}</Keywords>")
        if node["children"]:
            parts.append("<Children>")
            parts.extend(self._item_xml(child) for child in node["children"])
            parts.append("</Children>")
        parts.append("</BinderItem>")
        return "\n".join(parts)

    def manifest_xml(self, items) -> str:
        labels = "".join(
            f'<Label ID="{i}" Color="{c}">{escape(n)}</Label>' for i, n, c in self.labels
        )
        statuses = "".join(f'<Status ID="{i}">{escape(n)}</Status>' for i, n in self.statuses)
        keywords = "".join(
            f'<Keyword ID="{i}" Color="0.5 0.5 0.5">{escape(n)}</Keyword>' for i, n in self.keywords
        )
        binder = "\n".join(self._item_xml(node) for node in items)
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<ScrivenerProject Identifier="X" Version="{self.version}" Creator="Scrivener">\n'
            f"<ProjectTitle>{escape(self.title)}</ProjectTitle>\n"
            f"<Binder>\n{binder}\n</Binder>\n"
            f"<LabelSettings><Title>Label</Title><Labels>{labels}</Labels></LabelSettings>\n"
            f"<StatusSettings><Title>Status</Title><StatusItems>{statuses}</StatusItems></StatusSettings>\n"
            f"<KeywordSettings>{keywords}</KeywordSettings>\n"
            f"{self.targets or ''}\n"
            "</ScrivenerProject>\n"
        )

    def build(self, *items, manifest_name: str = "project.scrivx") -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        content_dir = "Data" if self.layout == "v3" else "Docs"
        (self.root / "Files" / content_dir).mkdir(parents=True, exist_ok=True)
        (self.root / manifest_name).write_text(self.manifest_xml(items), encoding="utf-8")
        for path, data in self.files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return self.root


@pytest.fixture
def builder(tmp_path):
    """A BundleBuilder for a current-format bundle at tmp_path/Novel.scriv."""
    return BundleBuilder(tmp_path / "Novel.scriv")


@pytest.fixture
def legacy_builder(tmp_path):
    """A BundleBuilder for a legacy-format bundle."""
    return BundleBuilder(tmp_path / "Old.scriv", layout="v2")
