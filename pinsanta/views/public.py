from __future__ import annotations

from flask import Blueprint, jsonify
from flask.views import MethodView

from ..models import Participant


public_bp = Blueprint("public", __name__)


class HealthView(MethodView):
    def get(self):
        return jsonify({
            "status": "ok",
            "num_participants": Participant.query.count(),
        })


public_bp.add_url_rule("/healthz", view_func=HealthView.as_view("healthz"))
