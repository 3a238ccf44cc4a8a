"""Scrivener icon names to symbol names plus an optional color.

Everything here is static lookup data and pure functions. Scrivener's built-in
icons are named either plainly ("Lightbulb") or as "Category (Variant)", where
the variant is usually a color ("Flag (Red)").
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import ItemType

CHECKED_COLOR = "#00AA00"

_CATEGORY_VARIANT = re.compile(r"^(.+?)\s*\((.+?)\)$")
_MIN_REVERSE_MATCH = 3

# category -> (outline symbol, filled symbol)
CATEGORY_SYMBOLS: dict[str, tuple[str, str]] = {
    # shapes
    "flag": ("flag", "flag.fill"),
    "book": ("book.closed", "book.closed.fill"),
    "note": ("note.text", "note.text"),
    "notebook": ("book", "book.fill"),
    "circle": ("circle", "circle.fill"),
    "square": ("square", "square.fill"),
    "triangle": ("triangle", "triangle.fill"),
    "diamond": ("diamond", "diamond.fill"),
    "rhombus": ("rhombus", "rhombus.fill"),
    "label": ("tag", "tag.fill"),
    "tag": ("tag", "tag.fill"),
    "star": ("star", "star.fill"),
    "heart": ("heart", "heart.fill"),
    "bookmark": ("bookmark", "bookmark.fill"),
    # to-do
    "to do": ("circle", "checkmark.circle.fill"),
    "todo": ("circle", "checkmark.circle.fill"),
    "checkbox": ("square", "checkmark.square.fill"),
    "check": ("circle", "checkmark.circle.fill"),
    # documents
    "document": ("doc.text", "doc.text.fill"),
    "doc": ("doc.text", "doc.text.fill"),
    "folder": ("folder", "folder.fill"),
    "text": ("doc.text", "doc.text.fill"),
    # people
    "character": ("person", "person.fill"),
    "person": ("person", "person.fill"),
    "people": ("person.3", "person.3.fill"),
    "group": ("person.3", "person.3.fill"),
    # places
    "location": ("mappin", "mappin.circle.fill"),
    "place": ("mappin", "mappin.circle.fill"),
    "setting": ("mappin.and.ellipse", "mappin.and.ellipse"),
    "building": ("building.2", "building.2.fill"),
    "house": ("house", "house.fill"),
    # objects
    "lightbulb": ("lightbulb", "lightbulb.fill"),
    "idea": ("lightbulb", "lightbulb.fill"),
    "gear": ("gearshape", "gearshape.fill"),
    "cog": ("gearshape", "gearshape.fill"),
    "lock": ("lock", "lock.fill"),
    "key": ("key", "key.fill"),
    "bell": ("bell", "bell.fill"),
    "clock": ("clock", "clock.fill"),
    "calendar": ("calendar", "calendar"),
    "pin": ("pin", "pin.fill"),
    "paperclip": ("paperclip", "paperclip"),
    "envelope": ("envelope", "envelope.fill"),
    # media
    "photo": ("photo", "photo.fill"),
    "image": ("photo", "photo.fill"),
    "camera": ("camera", "camera.fill"),
    "film": ("film", "film.fill"),
    "music": ("music.note", "music.note"),
}

COLOR_NAMES: dict[str, str] = {
    "red": "#FF0000",
    "orange": "#FF8000",
    "yellow": "#FFD700",
    "green": "#00AA00",
    "blue": "#0000FF",
    "purple": "#800080",
    "violet": "#8B00FF",
    "pink": "#FF69B4",
    "cyan": "#00FFFF",
    "teal": "#008080",
    "magenta": "#FF00FF",
    "lime": "#32CD32",
    "indigo": "#4B0082",
    "gray": "#808080",
    "grey": "#808080",
    "brown": "#8B4513",
    "black": "#000000",
    "white": "#FFFFFF",
    "dark red": "#8B0000",
    "dark green": "#006400",
    "dark blue": "#00008B",
    "light red": "#FF6B6B",
    "light green": "#90EE90",
    "light blue": "#ADD8E6",
    # status words used as variants
    "ticked": CHECKED_COLOR,
    "checked": CHECKED_COLOR,
    "done": CHECKED_COLOR,
    "filled": "#FFD700",
    "urgent": "#FF0000",
    "important": "#FF8000",
}

_CHECKED_VARIANTS = frozenset({"ticked", "checked"})
_UNCHECKED_VARIANTS = frozenset({"unchecked", "empty"})

ICON_NAMES: dict[str, str] = {
    # general
    "calendar": "calendar",
    "clock": "clock",
    "lightbulb": "lightbulb",
    "speech bubble": "bubble.left",
    "bubble": "bubble.left",
    "warning": "exclamationmark.triangle",
    "question": "questionmark.circle",
    "idea": "lightbulb.fill",
    "research": "magnifyingglass",
    "search": "magnifyingglass",
    "gear": "gearshape",
    "cog": "gearshape.fill",
    "cloud": "cloud",
    "sun": "sun.max",
    "moon": "moon",
    "star": "star",
    "heart": "heart",
    "bolt": "bolt",
    "lightning": "bolt",
    "lock": "lock",
    "key": "key",
    "pin": "pin",
    "paperclip": "paperclip",
    "link": "link",
    "camera": "camera",
    "photo": "photo",
    "image": "photo",
    "film": "film",
    "video": "film",
    "music": "music.note",
    "musical note": "music.note",
    "microphone": "mic",
    "globe": "globe",
    "world": "globe",
    "map": "map",
    "location": "mappin",
    "house": "house",
    "home": "house",
    "building": "building.2",
    "test tube": "testtube.2",
    "beaker": "flask",
    "flask": "flask",
    "atom": "atom",
    "brain": "brain",
    "eye": "eye",
    "ear": "ear",
    "hand": "hand.raised",
    "person": "person",
    "people": "person.3",
    "group": "person.3.fill",
    "conversation": "bubble.left.and.bubble.right",
    "chat": "bubble.left.and.bubble.right",
    "document": "doc.text",
    "doc": "doc.text",
    "folder": "folder",
    "trash": "trash",
    "pencil": "pencil",
    "pen": "pencil.line",
    "eraser": "eraser",
    "ruler": "ruler",
    "scissors": "scissors",
    "tool": "wrench",
    "wrench": "wrench",
    "hammer": "hammer",
    "paintbrush": "paintbrush",
    "palette": "paintpalette",
    "bookmark": "bookmark",
    "tag": "tag",
    "envelope": "envelope",
    "mail": "envelope.fill",
    "email": "envelope",
    "phone": "phone",
    "message": "message",
    "send": "paperplane",
    "bell": "bell",
    "alarm": "alarm",
    "timer": "timer",
    "stopwatch": "stopwatch",
    "hourglass": "hourglass",
    # writing
    "character": "person",
    "protagonist": "star.circle",
    "antagonist": "bolt.circle",
    "villain": "bolt.circle",
    "hero": "star.circle",
    "setting": "mappin.and.ellipse",
    "scene": "theatermasks",
    "chapter": "book",
    "plot": "point.topleft.down.curvedto.point.bottomright.up",
    "subplot": "arrow.triangle.branch",
    "conflict": "bolt.fill",
    "resolution": "checkmark.circle",
    "climax": "arrow.up.to.line",
    "draft": "doc.plaintext",
    "revision": "pencil.circle",
    "final": "doc.badge.checkmark",
    "manuscript": "text.book.closed",
    "notes": "note.text",
    "note": "note.text",
    "outline": "list.bullet",
    # status
    "to do": "circle",
    "todo": "circle",
    "done": "checkmark.circle.fill",
    "complete": "checkmark.circle.fill",
    "completed": "checkmark.circle.fill",
    "in progress": "clock",
    "pending": "clock",
    "checkbox": "square",
    "checkmark": "checkmark",
    "flag": "flag",
    # symbols
    "exclamation": "exclamationmark.triangle",
    "important": "exclamationmark.triangle",
    "info": "info.circle",
    "information": "info.circle",
    "help": "questionmark.circle",
    "target": "target",
    "bullseye": "target",
}

TYPE_DEFAULTS: dict[ItemType, str] = {
    ItemType.DRAFT_ROOT: "book.closed.fill",
    ItemType.RESEARCH_ROOT: "magnifyingglass",
    ItemType.TRASH_ROOT: "trash",
    ItemType.FOLDER: "folder",
    ItemType.TEXT: "doc.text",
    ItemType.PDF: "doc.richtext",
    ItemType.IMAGE: "photo",
    ItemType.WEB_PAGE: "globe",
    ItemType.OTHER: "doc",
}

# Longest names first, so "speech bubble" beats "bubble" in partial matches.
_PARTIAL_KEYS = sorted(ICON_NAMES, key=lambda k: (-len(k), k))


@dataclass(frozen=True)
class IconMapping:
    name: str
    color_hex: str | None = None
    recognized: bool = True


def default_icon(item_type: ItemType) -> str:
    return TYPE_DEFAULTS.get(item_type, "doc.text")


def _lookup_name(normalized: str) -> str | None:
    """Exact, then partial match against the plain icon names."""
    if normalized in ICON_NAMES:
        return ICON_NAMES[normalized]
    for key in _PARTIAL_KEYS:
        if key in normalized:
            return ICON_NAMES[key]
    if len(normalized) >= _MIN_REVERSE_MATCH:
        for key in reversed(_PARTIAL_KEYS):
            if normalized in key:
                return ICON_NAMES[key]
    return None


def _map_category_variant(category: str, variant: str) -> IconMapping | None:
    symbols = CATEGORY_SYMBOLS.get(category)
    color = COLOR_NAMES.get(variant)
    if symbols is None:
        # unknown category: the plain table may still know it, keep the color
        name = _lookup_name(category)
        return IconMapping(name, color) if name else None
    outline, filled = symbols
    if color is not None:
        return IconMapping(filled, color)
    if variant in _CHECKED_VARIANTS:
        return IconMapping(filled, CHECKED_COLOR)
    if variant in _UNCHECKED_VARIANTS:
        return IconMapping(outline)
    return IconMapping(outline)


def map_icon(descriptor: str | None, item_type: ItemType) -> IconMapping:
    """Map a Scrivener icon descriptor to a symbol name and optional hex color.

    Pure: the same descriptor and type always give the same mapping. Unknown
    descriptors fall back to the item type's default with ``recognized`` unset.
    """
    if descriptor is None or not descriptor.strip():
        return IconMapping(default_icon(item_type))

    match = _CATEGORY_VARIANT.match(descriptor.strip())
    if match:
        mapping = _map_category_variant(
            match.group(1).strip().lower(), match.group(2).strip().lower()
        )
        if mapping is not None:
            return mapping

    name = _lookup_name(descriptor.strip().lower())
    if name is not None:
        return IconMapping(name)
    return IconMapping(default_icon(item_type), recognized=False)
