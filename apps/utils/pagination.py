import math

from django.conf import settings

from .validators import parse_positive_int


class PageRequest:
    """
    page/limit pair parsed from query params, with the project defaults applied.

    A page past the end yields an empty slice, not a 404, so DRF's
    PageNumberPagination is not used here.
    """

    def __init__(self, page=None, limit=None):
        default_limit = getattr(settings, "BULK_ORDER_PAGE_SIZE", 10)
        max_limit = getattr(settings, "BULK_ORDER_MAX_PAGE_SIZE", 100)

        self.page = parse_positive_int(page, 1)
        self.limit = min(parse_positive_int(limit, default_limit), max_limit)

    @classmethod
    def from_query_params(cls, query_params):
        return cls(query_params.get("page"), query_params.get("limit"))

    @property
    def offset(self):
        return (self.page - 1) * self.limit

    def slice(self, queryset):
        return queryset[self.offset:self.offset + self.limit]

    def summary(self, total: int) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": math.ceil(total / self.limit),
        }
