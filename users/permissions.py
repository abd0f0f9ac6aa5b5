from rest_framework.permissions import BasePermission


class IsAdmin(BasePermission):
    """
    Only platform admins (role=admin or superusers)
    """
    message = "Only admins can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsStudent(BasePermission):
    """
    Only student accounts
    """
    message = "Only students can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_student)
