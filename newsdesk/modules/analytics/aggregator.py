"""
Analytics Aggregator
====================

Pure functions over article and newsletter snapshots. Nothing here reads
the store or produces placeholder numbers; an empty input gives empty or
zero output.
"""

from ...core.exceptions import ValidationError

DIMENSIONS = ('category', 'country')
ARTICLE_STATUSES = ('all', 'published', 'selected', 'not_selected')
ARTICLE_SORT_FIELDS = ('title', 'company', 'country', 'category', 'views', 'created_at', 'published_at')
NEWSLETTER_SORT_FIELDS = ('title', 'publish_date', 'views', 'unique_readers')
SORT_ORDERS = ('asc', 'desc')

_NUMERIC_FIELDS = ('views', 'unique_readers')


def _count_by(articles, attribute):
    counts = {}
    for article in articles:
        key = getattr(article, attribute)
        if not key:
            continue
        counts[key] = counts.get(key, 0) + 1
    # sorted() is stable, so ties keep first-seen order
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{'name': name, 'count': count} for name, count in ordered]


def count_by_category(articles):
    return _count_by(articles, 'category')


def count_by_country(articles):
    return _count_by(articles, 'country')


def publication_distribution(articles):
    """Published / selected-but-unpublished / not selected; sums to len(articles)"""
    published = selected = not_selected = 0
    for article in articles:
        if article.published_in_newsletter:
            published += 1
        elif article.selected_for_newsletter:
            selected += 1
        else:
            not_selected += 1
    return {'published': published, 'selected': selected, 'not_selected': not_selected}


def views_by_dimension(articles, dimension):
    if dimension not in DIMENSIONS:
        raise ValidationError(f"Unknown dimension: {dimension}", {'allowed': list(DIMENSIONS)})
    totals = {}
    for article in articles:
        key = getattr(article, dimension)
        if not key:
            continue
        totals[key] = totals.get(key, 0) + (article.views or 0)
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{'name': name, 'views': views} for name, views in ordered]


def overview(articles, newsletters):
    """Manager dashboard headline numbers"""
    total = len(articles)
    published = sum(1 for a in articles if a.published_in_newsletter)
    selected = sum(1 for a in articles if a.selected_for_newsletter)
    return {
        'total_articles': total,
        'selected_articles': selected,
        'published_articles': published,
        'total_newsletters': len(newsletters),
        'published_percentage': round(published / total * 100) if total else 0,
    }


def newsletter_performance(newsletters, limit=5):
    """Most viewed newsletters with their reader counts"""
    ranked = sorted(newsletters, key=lambda n: n.views or 0, reverse=True)
    return [
        {
            'id': n.id,
            'title': n.title,
            'publish_date': n.publish_date,
            'views': n.views,
            'unique_readers': n.unique_readers,
            'article_count': len(n.articles),
        }
        for n in ranked[:limit]
    ]


def _sort_key(field_name):
    if field_name in _NUMERIC_FIELDS:
        return lambda record: getattr(record, field_name) or 0
    return lambda record: str(getattr(record, field_name) or '').lower()


def _check_choice(value, allowed, name):
    if value not in allowed:
        raise ValidationError(f"Invalid {name}: {value}", {'allowed': list(allowed)})


def sort_articles(articles, status='all', sort_by='created_at', order='desc'):
    """Content-performance article table"""
    _check_choice(status, ARTICLE_STATUSES, 'status')
    _check_choice(sort_by, ARTICLE_SORT_FIELDS, 'sort_by')
    _check_choice(order, SORT_ORDERS, 'order')

    if status == 'published':
        articles = [a for a in articles if a.published_in_newsletter]
    elif status == 'selected':
        articles = [a for a in articles if a.is_pending]
    elif status == 'not_selected':
        articles = [a for a in articles if not a.selected_for_newsletter]

    return sorted(articles, key=_sort_key(sort_by), reverse=(order == 'desc'))


def sort_newsletters(newsletters, sort_by='publish_date', order='desc'):
    _check_choice(sort_by, NEWSLETTER_SORT_FIELDS, 'sort_by')
    _check_choice(order, SORT_ORDERS, 'order')
    return sorted(newsletters, key=_sort_key(sort_by), reverse=(order == 'desc'))
