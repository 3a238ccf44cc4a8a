"""Tests for slugify and numbered file names."""

from scrivport.core.utils import numbered_name, slugify


def test_slugify_basic():
    """Test basic slugification."""
    assert slugify("Chapter One") == "chapter-one"
    assert slugify("Hello World") == "hello-world"


def test_slugify_unicode():
    """Test unicode normalization."""
    # En dash (–) should be normalized
    assert slugify("Before–After") == "before-after"
    # Em dash (—) should also work
    assert slugify("Test—Example") == "test-example"
    # Accents are folded
    assert slugify("Café Crème") == "cafe-creme"


def test_slugify_punctuation():
    """Test punctuation removal."""
    assert slugify("Chapter 1: The Beginning") == "chapter-1-the-beginning"
    assert slugify("Test (with parentheses)") == "test-with-parentheses"
    assert slugify("Question?") == "question"


def test_slugify_multiple_spaces_and_dashes():
    """Test runs of spaces, underscores and dashes collapse to one dash."""
    assert slugify("Multiple   spaces   here") == "multiple-spaces-here"
    assert slugify("Test - - Example") == "test-example"
    assert slugify("snake_case_title") == "snake-case-title"


def test_slugify_leading_trailing():
    """Test leading/trailing dashes are stripped."""
    assert slugify(" Leading and trailing ") == "leading-and-trailing"
    assert slugify("-Already-Has-Dashes-") == "already-has-dashes"


def test_slugify_empty():
    """Test empty string."""
    assert slugify("") == ""
    assert slugify("   ") == ""
    assert slugify("***") == ""


def test_slugify_truncates_at_word_boundary():
    """Test long titles are cut at a dash, not mid-word."""
    assert slugify("aaaaaaaaaa bbbbbbbbbb", max_length=15) == "aaaaaaaaaa"
    assert slugify("x" * 80) == "x" * 60


def test_numbered_name():
    """Test sibling order prefixes."""
    assert numbered_name(0, "Chapter One") == "01-chapter-one"
    assert numbered_name(11, "???") == "12-untitled"
    assert numbered_name(4, "Scene", width=3) == "005-scene"
