from __future__ import annotations

import logging

from flask import Blueprint, jsonify, session
from flask.views import MethodView
from flask_login import login_user, logout_user, current_user

from ..forms import AdminLoginForm, PinLoginForm, first_error
from ..policies import ADMIN_SESSION_KEY, unauthorized
from ..security import verify_admin_pin
from ..services.registry import find_by_pin
from .serializers import player_status


logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


class AdminLoginView(MethodView):
    def post(self):
        form = AdminLoginForm()
        if not form.validate_on_submit():
            return jsonify({"error": first_error(form)}), 400

        if not verify_admin_pin(form.pin.data):
            logger.warning("Rejected admin login")
            return unauthorized("Invalid PIN")

        session[ADMIN_SESSION_KEY] = True
        return jsonify({"success": True})


class AdminLogoutView(MethodView):
    def post(self):
        session.pop(ADMIN_SESSION_KEY, None)
        return jsonify({"success": True})


class PlayerLoginView(MethodView):
    """
    PIN login. A bad format or an unknown PIN is an authentication failure,
    not a server error.
    """
    def post(self):
        form = PinLoginForm()
        if not form.validate_on_submit():
            return jsonify({"error": first_error(form)}), 400

        player = find_by_pin(form.pin.data)
        if player is None:
            return unauthorized("Invalid PIN")

        login_user(player)
        return jsonify(player_status(player))


class PlayerLogoutView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            logout_user()
        return jsonify({"success": True})


auth_bp.add_url_rule("/admin/login", view_func=AdminLoginView.as_view("admin_login"), methods=["POST"])
auth_bp.add_url_rule("/admin/logout", view_func=AdminLogoutView.as_view("admin_logout"), methods=["POST"])
auth_bp.add_url_rule("/player/login", view_func=PlayerLoginView.as_view("player_login"), methods=["POST"])
auth_bp.add_url_rule("/player/logout", view_func=PlayerLogoutView.as_view("player_logout"), methods=["POST"])
