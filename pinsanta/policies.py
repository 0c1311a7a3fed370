from __future__ import annotations

from flask import jsonify, request, session
from flask_login import current_user
from flask.views import MethodView

from .security import verify_admin_pin


ADMIN_SESSION_KEY = "is_admin"
ADMIN_HEADER = "X-Admin-Pin"


def is_admin_request() -> bool:
    """Admin via the session flag set at login, or a per-request X-Admin-Pin header."""
    if session.get(ADMIN_SESSION_KEY):
        return True
    return verify_admin_pin(request.headers.get(ADMIN_HEADER))


def unauthorized(message: str = "Unauthorized"):
    return jsonify({"error": message}), 401


# --------- Class-based view Mixins ----------

class LoginRequiredMixin(MethodView):
    """Player endpoints: requires a participant logged in with their PIN."""
    def dispatch_request(self, *args, **kwargs):
        if not current_user.is_authenticated:
            return unauthorized("Log in with your PIN first.")
        return super().dispatch_request(*args, **kwargs)


class AdminRequiredMixin(MethodView):
    def dispatch_request(self, *args, **kwargs):
        if not is_admin_request():
            return unauthorized()
        return super().dispatch_request(*args, **kwargs)
