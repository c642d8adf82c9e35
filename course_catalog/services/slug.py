import re

from course_catalog.schemas.course_category import SLUG_MAX_LENGTH

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
FALLBACK_SLUG = "category"
# Room reserved at the end of a slug for a "-N" collision suffix
SUFFIX_ROOM = 10


def slugify(name: str) -> str:
    """
    Lowercase, hyphenated slug of name: "Data Science 101" -> "data-science-101".

    Names with nothing usable in them ("!!!", non-latin scripts) fall back
    to "category" so the result always matches the slug pattern.
    """
    slug = _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].strip("-")
    return slug or FALLBACK_SLUG


def with_suffix(base: str, n: int) -> str:
    if n == 0:
        return base[:SLUG_MAX_LENGTH]
    suffix = f"-{n}"
    return base[:SLUG_MAX_LENGTH - len(suffix)] + suffix


def candidate_prefix(base: str) -> str:
    """Common prefix of every candidate with_suffix() can produce for base"""
    return base[:SLUG_MAX_LENGTH - SUFFIX_ROOM]


def unique_slug(base: str, taken: set[str]) -> str:
    """First of base, base-1, base-2, ... not in taken"""
    n = 0
    while True:
        candidate = with_suffix(base, n)
        if candidate not in taken:
            return candidate
        n += 1
