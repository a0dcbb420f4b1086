"""Slug helpers used to derive stable song identifiers"""
import re
import unicodedata

_NON_WORD = re.compile(r"[^a-z0-9]+")

def slugify(text: str) -> str:
    """Lowercase ASCII slug: 'Burna Boy - Ye' -> 'burna-boy-ye'"""
    normalized = unicodedata.normalize('NFKD', text or '').encode('ascii', 'ignore').decode('ascii')
    return _NON_WORD.sub('-', normalized.lower()).strip('-')
