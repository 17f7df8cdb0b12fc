"""
Store Records
=============

Canonical Article and Newsletter records. Rows coming back from any store
pass through normalize_article / normalize_newsletter exactly once, so the
rest of the code never has to fill in missing fields.
"""

import json
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from typing import Any, List, Optional

COUNTRIES = [
    "Australia", "Japan", "Hong Kong", "Singapore",
    "Malaysia", "Indonesia", "Thailand", "Philippines",
]

CATEGORIES = [
    "Wealth Management", "Private Banking", "Global Markets", "Capital Markets",
    "Risk Management", "AML/KYC", "Core Banking", "Transaction Banking",
    "Cash Management", "Payments",
]

# Lookup keyed on lowercase name with spaces removed ("hongkong" -> "Hong Kong")
_COUNTRY_LOOKUP = {name.lower().replace(' ', ''): name for name in COUNTRIES}


@dataclass(frozen=True)
class Article:
    """Normalized article representation used across the workflow."""

    id: Any
    title: str = ''
    company: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None
    source_url: Optional[str] = None
    created_at: Optional[str] = None
    published_at: Optional[str] = None
    views: int = 0
    selected_for_newsletter: bool = False
    published_in_newsletter: bool = False
    newsletter_id: Any = None

    @property
    def is_pending(self):
        """Selected for the next newsletter but not yet published"""
        return self.selected_for_newsletter and not self.published_in_newsletter

    def with_flags(self, **flags):
        return replace(self, **flags)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Newsletter:
    id: Any
    title: str = ''
    description: str = ''
    publish_date: Optional[str] = None
    banner_image_url: Optional[str] = None
    views: int = 0
    unique_readers: int = 0
    articles: List[Any] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class NewsletterMeta:
    """What the publish form submits alongside the article ids"""

    title: str
    description: str
    banner_image_url: Optional[str] = None
    publish_date: Optional[str] = None


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat()


def canonical_country(value):
    """Map a stored country spelling onto the fixed country list; unknown values pass through"""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return _COUNTRY_LOOKUP.get(text.lower().replace(' ', ''), text)


def _pick(row, *keys, default=None):
    """First present, non-None value among snake_case / camelCase spellings"""
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 't', 'yes')
    return bool(value)


def _as_count(value):
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _as_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_id_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    if not isinstance(value, (list, tuple)):
        return []
    return list(value)


def normalize_article(row):
    """Build an Article from a raw store row (sqlite Row, dict from JSON, ...)"""
    row = dict(row)
    published = _as_bool(_pick(row, 'published_in_newsletter', 'publishedInNewsletter', default=False))
    selected_raw = _pick(row, 'selected_for_newsletter', 'selectedForNewsletter')
    # A published article was necessarily selected, even if the flag was never written
    selected = published if selected_raw is None else (_as_bool(selected_raw) or published)

    return Article(
        id=row.get('id'),
        title=_as_text(row.get('title')) or '',
        company=_as_text(row.get('company')),
        country=canonical_country(row.get('country')),
        category=_as_text(row.get('category')),
        summary=_as_text(row.get('summary')),
        source_url=_as_text(_pick(row, 'source_url', 'sourceUrl', 'url')),
        created_at=_pick(row, 'created_at', 'createdAt', 'created_date'),
        published_at=_pick(row, 'published_at', 'publishedAt', 'published_date'),
        views=_as_count(row.get('views')),
        selected_for_newsletter=selected,
        published_in_newsletter=published,
        newsletter_id=_pick(row, 'newsletter_id', 'newsletterId'),
    )


def normalize_newsletter(row):
    """Build a Newsletter from a raw store row"""
    row = dict(row)
    return Newsletter(
        id=row.get('id'),
        title=_as_text(row.get('title')) or '',
        description=_as_text(row.get('description')) or '',
        publish_date=_pick(row, 'publish_date', 'publishDate'),
        banner_image_url=_as_text(_pick(row, 'banner_image_url', 'bannerImageUrl')),
        views=_as_count(row.get('views')),
        unique_readers=_as_count(_pick(row, 'unique_readers', 'uniqueReaders')),
        articles=_as_id_list(row.get('articles')),
    )
