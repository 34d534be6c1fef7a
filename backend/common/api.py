"""DRF glue shared by all apps."""

import logging

from rest_framework.permissions import BasePermission
from rest_framework.response import Response
from rest_framework.views import exception_handler

from services.exceptions import ServiceError

logger = logging.getLogger(__name__)


def service_exception_handler(exc, context):
    """
    Render service-layer errors as ``{"error": ..., "code": ...}``.

    Anything that is not a ServiceError falls through to DRF's default handler.
    """
    if isinstance(exc, ServiceError):
        logger.debug("Service error in %s: %s", context.get("view"), exc.message)
        return Response(
            {"error": exc.message, "code": exc.error_code},
            status=exc.status_code,
        )
    return exception_handler(exc, context)


class IsPlatformAdmin(BasePermission):
    """
    Allows access only to users with role == 'admin' (or staff accounts).
    """
    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return user.is_staff or getattr(user, "role", None) == "admin"
