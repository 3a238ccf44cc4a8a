"""Tests for icon descriptor mapping."""

from scrivport.scrivener.icons import CHECKED_COLOR, IconMapping, default_icon, map_icon
from scrivport.scrivener.models import ItemType


def test_category_with_color_uses_filled_symbol():
    assert map_icon("Flag (Red)", ItemType.TEXT) == IconMapping("flag.fill", "#FF0000")
    assert map_icon("Star (Light Blue)", ItemType.TEXT) == IconMapping("star.fill", "#ADD8E6")


def test_checked_and_unchecked_variants():
    assert map_icon("To Do (Ticked)", ItemType.TEXT) == IconMapping("checkmark.circle.fill", CHECKED_COLOR)
    assert map_icon("Checkbox (Unchecked)", ItemType.TEXT) == IconMapping("square")
    assert map_icon("Checkbox (Empty)", ItemType.TEXT) == IconMapping("square")


def test_unknown_variant_uses_outline_without_color():
    assert map_icon("Heart (Sparkly)", ItemType.TEXT) == IconMapping("heart")


def test_direct_names_case_insensitive():
    assert map_icon("Lightbulb", ItemType.TEXT) == IconMapping("lightbulb")
    assert map_icon("  SPEECH BUBBLE ", ItemType.TEXT) == IconMapping("bubble.left")
    assert map_icon("Test Tube", ItemType.FOLDER) == IconMapping("testtube.2")


def test_partial_match_prefers_longest_name():
    assert map_icon("Big Speech Bubble Icon", ItemType.TEXT).name == "bubble.left"
    assert map_icon("Chapter Heading", ItemType.TEXT).name == "book"


def test_unknown_category_with_known_color_keeps_color():
    assert map_icon("Globe (Green)", ItemType.TEXT) == IconMapping("globe", "#00AA00")


def test_unrecognized_falls_back_to_type_default():
    mapping = map_icon("zzqx", ItemType.FOLDER)
    assert mapping == IconMapping("folder", None, recognized=False)
    assert map_icon("zzqx", ItemType.TEXT).name == "doc.text"


def test_missing_descriptor_is_type_default():
    assert map_icon(None, ItemType.DRAFT_ROOT) == IconMapping("book.closed.fill")
    assert map_icon("", ItemType.WEB_PAGE) == IconMapping("globe")
    assert map_icon(None, ItemType.OTHER).recognized


def test_type_defaults():
    assert default_icon(ItemType.RESEARCH_ROOT) == "magnifyingglass"
    assert default_icon(ItemType.TRASH_ROOT) == "trash"
    assert default_icon(ItemType.PDF) == "doc.richtext"
    assert default_icon(ItemType.IMAGE) == "photo"
    assert default_icon(ItemType.OTHER) == "doc"


def test_mapping_is_deterministic():
    descriptors = ["Flag (Red)", "Chapter Heading", "zzqx", None, "Notebook (Purple)"]
    first = [map_icon(d, ItemType.TEXT) for d in descriptors]
    second = [map_icon(d, ItemType.TEXT) for d in descriptors]
    assert first == second
