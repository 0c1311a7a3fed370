from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user

from ..policies import LoginRequiredMixin
from ..services.assignments import assign
from .serializers import player_status

player_bp = Blueprint("player", __name__, url_prefix="/api/player")


class MeView(LoginRequiredMixin):
    def get(self):
        return jsonify(player_status(current_user))


class AssignView(LoginRequiredMixin):
    """Draws the player's target on first call; later calls return the same one."""
    def post(self):
        player_id = current_user.id
        target = assign(player_id)
        return jsonify({
            "id": player_id,
            "name": current_user.name,
            "target_name": target.name,
        })


player_bp.add_url_rule("/me", view_func=MeView.as_view("me"))
player_bp.add_url_rule("/assign", view_func=AssignView.as_view("assign"), methods=["POST"])
