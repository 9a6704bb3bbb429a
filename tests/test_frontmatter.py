import pytest

from quire.errors import FrontMatterError
from quire.frontmatter import body_line_offset, has_front_matter, split_front_matter


def test_split_front_matter_returns_mapping_and_body():
    text = "---\nlayout: post\ntitle: Hello\ntags: [a, b]\n---\nBody\n"
    frontmatter, body = split_front_matter(text)
    assert frontmatter == {"layout": "post", "title": "Hello", "tags": ["a", "b"]}
    assert body == "Body\n"


def test_empty_front_matter_block_is_valid():
    frontmatter, body = split_front_matter("---\n---\nBody")
    assert frontmatter == {}
    assert body == "Body"


def test_front_matter_may_close_with_dots():
    frontmatter, body = split_front_matter("---\ntitle: x\n...\nrest")
    assert frontmatter == {"title": "x"}
    assert body == "rest"


def test_text_without_front_matter_is_untouched():
    text = "Just some text\n---\nmore"
    assert not has_front_matter(text)
    assert split_front_matter(text) == ({}, text)
    assert not has_front_matter("----\ntitle: x\n----\n")


def test_unterminated_front_matter_raises():
    with pytest.raises(FrontMatterError, match="not terminated"):
        split_front_matter("---\ntitle: x\nbody")


def test_invalid_yaml_raises():
    with pytest.raises(FrontMatterError, match="invalid YAML"):
        split_front_matter("---\ntitle: [unclosed\n---\n")


def test_non_mapping_front_matter_raises():
    with pytest.raises(FrontMatterError, match="must be a mapping"):
        split_front_matter("---\n- a\n- b\n---\n")


def test_body_line_offset():
    assert body_line_offset("---\ntitle: x\n---\nbody") == 3
    assert body_line_offset("no front matter") == 0
