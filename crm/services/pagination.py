from django.conf import settings


def paginate(queryset, page: int | None = None, page_size: int | None = None):
    """Slice an ordered queryset; returns ``(items, pagination)``."""
    page = max(page or 1, 1)
    page_size = min(page_size or settings.CRM_PAGE_SIZE, settings.CRM_MAX_PAGE_SIZE)
    total = queryset.count()
    start = (page - 1) * page_size
    items = list(queryset[start:start + page_size])
    return items, {'total': total, 'page': page, 'pageSize': page_size}
