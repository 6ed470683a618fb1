# apps/utils/pagination.py
from django.conf import settings
from django.core.paginator import Page
from rest_framework.exceptions import NotFound
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.utils.urls import replace_query_param


class StandardResultsSetPagination(PageNumberPagination):
    """
    `page` / `per_page` pagination. `per_page` is clamped to the configured maximum.
    A page past the last one comes back empty with valid `meta`, not as a 404.
    """
    page_size = getattr(settings, "API_PAGE_SIZE", 15)
    page_size_query_param = 'per_page'
    max_page_size = getattr(settings, "API_MAX_PAGE_SIZE", 100)

    def paginate_queryset(self, queryset, request, view=None):
        try:
            return super().paginate_queryset(queryset, request, view)
        except NotFound:
            number = self._requested_page_number(request)
            if number is None:
                raise
            paginator = self.django_paginator_class(queryset, self.get_page_size(request))
            self.page = Page([], number, paginator)
            self.request = request
            return []

    def _requested_page_number(self, request):
        try:
            number = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return None
        return number if number > 1 else None

    def get_previous_link(self):
        last_page = self.page.paginator.num_pages
        if self.page.number > last_page + 1:
            url = self.request.build_absolute_uri()
            return replace_query_param(url, self.page_query_param, last_page)
        return super().get_previous_link()

    def get_paginated_response(self, data):
        return Response({
            "data": data,
            "meta": {
                "current_page": self.page.number,
                "per_page": self.page.paginator.per_page,
                "total": self.page.paginator.count,
                "last_page": self.page.paginator.num_pages,
            },
            "links": {
                "next": self.get_next_link(),
                "prev": self.get_previous_link(),
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "data": schema,
                "meta": {
                    "type": "object",
                    "properties": {
                        "current_page": {"type": "integer"},
                        "per_page": {"type": "integer"},
                        "total": {"type": "integer"},
                        "last_page": {"type": "integer"},
                    },
                },
                "links": {
                    "type": "object",
                    "properties": {
                        "next": {"type": "string", "nullable": True, "format": "uri"},
                        "prev": {"type": "string", "nullable": True, "format": "uri"},
                    },
                },
            },
        }
