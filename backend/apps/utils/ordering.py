# apps/utils/ordering.py
from rest_framework.filters import BaseFilterBackend

from .exceptions import ValidationFailed


class SortByOrderFilter(BaseFilterBackend):
    """
    `?sort_by=<field>&order=asc|desc` sorting.

    Views declare `sort_fields` (whitelist), `default_sort_by` and `default_order`.
    The primary key is always appended so pagination is stable.
    """
    sort_param = "sort_by"
    order_param = "order"

    def filter_queryset(self, request, queryset, view):
        sort_fields = getattr(view, "sort_fields", ())
        sort_by = request.query_params.get(self.sort_param) or getattr(view, "default_sort_by", "pk")
        order = (request.query_params.get(self.order_param) or getattr(view, "default_order", "asc")).lower()

        errors = {}
        if sort_by not in sort_fields:
            errors[self.sort_param] = [f"Cannot sort by '{sort_by}'. Allowed: {', '.join(sort_fields)}."]
        if order not in ("asc", "desc"):
            errors[self.order_param] = ["Order must be 'asc' or 'desc'."]
        if errors:
            raise ValidationFailed(errors)

        prefix = "-" if order == "desc" else ""
        return queryset.order_by(f"{prefix}{sort_by}", f"{prefix}pk")

    def get_schema_operation_parameters(self, view):
        return [
            {
                "name": self.sort_param,
                "required": False,
                "in": "query",
                "schema": {"type": "string", "enum": list(getattr(view, "sort_fields", ()))},
            },
            {
                "name": self.order_param,
                "required": False,
                "in": "query",
                "schema": {"type": "string", "enum": ["asc", "desc"]},
            },
        ]
