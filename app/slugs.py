import re

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """
    Return a URL-safe, lowercase slug derived from *text*.

    Only ``a-z``, ``0-9`` and ``-`` survive.  The result is not guaranteed
    to be unique; callers check collisions against the articles table.
    """
    text = _SLUG_STRIP_RE.sub("", text.lower())
    text = _SLUG_SPACE_RE.sub("-", text.strip())
    return _SLUG_DASH_RE.sub("-", text).strip("-")
