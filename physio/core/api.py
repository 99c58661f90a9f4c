"""
Small helpers shared by the JSON endpoints.
"""
import json
from functools import wraps

from django.http import JsonResponse

from .exceptions import SchedulingError


def parse_json_body(request):
    """Return the decoded JSON body, or None if it is not a JSON object"""
    try:
        data = json.loads(request.body or b"{}")
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def json_error(message, status=400, code="invalid_request", **extra):
    payload = {"success": False, "error": code, "message": message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def form_error_response(form):
    """First form error as the message, all errors as details"""
    errors = form.errors.get_json_data()
    first = next(iter(errors.values()))[0]["message"] if errors else "Invalid data"
    return json_error(first, errors=errors)


def scheduling_error_response(exc: SchedulingError):
    return JsonResponse(exc.as_dict(), status=exc.status_code)


def role_required(*roles):
    """
    Require an authenticated user whose role is one of ``roles``.
    Answers 401/403 JSON instead of redirecting to a login page.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            user = request.user
            if not user.is_authenticated:
                return json_error("Authentication required", status=401, code="unauthorized")
            if roles and user.role not in roles:
                return json_error(
                    "You do not have permission to perform this action",
                    status=403,
                    code="permission_denied",
                )
            return view(request, *args, **kwargs)
        return wrapper
    return decorator
