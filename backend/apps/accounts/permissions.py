# apps/accounts/permissions.py
from rest_framework import permissions


def is_owner(user, record) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return getattr(record, "user_id", None) == user.id


def can_view(user, record) -> bool:
    return is_owner(user, record)


def can_update(user, record) -> bool:
    return is_owner(user, record)


def can_delete(user, record) -> bool:
    return is_owner(user, record)


class IsRecordOwner(permissions.BasePermission):
    """
    Object-level permission: only the owner of a Location/Outage may read,
    change or delete it.
    """
    message = "You do not have permission to access this resource."

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return can_view(request.user, obj)
        if request.method == "DELETE":
            return can_delete(request.user, obj)
        return can_update(request.user, obj)
