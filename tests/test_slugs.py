"""
Slug derivation.

No database is needed; the autouse table fixture still runs but these
tests never touch a session.
"""
import pytest

from app.slugs import slugify


# ---------------------------------------------------------------------------
# slugify
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "title, expected",
    [
        ("Hello World", "hello-world"),
        ("Hello World! This is a Test.", "hello-world-this-is-a-test"),
        ("  Leading and trailing  ", "leading-and-trailing"),
        ("Tabs\tand\nnewlines", "tabs-and-newlines"),
        ("Already-hyphenated -- title", "already-hyphenated-title"),
        ("snake_case_words", "snakecasewords"),
        ("Café au lait", "caf-au-lait"),
        ("2024: Year in Review", "2024-year-in-review"),
        ("!!!", ""),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_slugify_is_deterministic():
    title = "Breaking: Markets Rally 5% on Rate Cut"
    assert slugify(title) == slugify(title)


def test_slugify_only_url_safe_characters():
    slug = slugify("Ünïcödé & <script>alert('x')</script> ~ title")
    assert set(slug) <= set("abcdefghijklmnopqrstuvwxyz0123456789-")
    assert "--" not in slug


def test_different_titles_can_share_a_slug():
    assert slugify("Hello, World") == slugify("hello world!")
