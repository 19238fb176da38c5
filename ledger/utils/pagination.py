import math

from django.core.paginator import EmptyPage, PageNotAnInteger, Paginator

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50
ADMIN_MAX_PAGE_SIZE = 100


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def page_params(query_params, default_page_size=DEFAULT_PAGE_SIZE):
    """
    Read `page` and `page_size` from request query parameters.

    Missing or malformed values fall back to the defaults instead of failing
    the request; the page size cap is applied by `paginate`.
    """
    page = _positive_int(query_params.get("page"), 1)
    page_size = _positive_int(query_params.get("page_size"), default_page_size)
    return page, page_size


def paginate(queryset, page=1, page_size=DEFAULT_PAGE_SIZE, max_page_size=MAX_PAGE_SIZE):
    """
    Slice a queryset into one page.

    Returns a dict with the page's `items` and the `total`, `page`,
    `page_size` and `total_pages` counters. A page past the end yields an
    empty item list rather than an error.
    """
    page = _positive_int(page, 1)
    page_size = min(_positive_int(page_size, DEFAULT_PAGE_SIZE), max_page_size)

    paginator = Paginator(queryset, page_size)
    try:
        items = list(paginator.page(page).object_list)
    except (EmptyPage, PageNotAnInteger):
        items = []

    total = paginator.count
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }
