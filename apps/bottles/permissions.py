from rest_framework import permissions


class IsBottleOwner(permissions.BasePermission):
    """
    Permission: Only the owner can see or modify a collection bottle.
    """

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id
