from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..forms import ParticipantCreateForm, ParticipantUpdateForm, first_error
from ..policies import AdminRequiredMixin
from ..services.assignments import reset_assignments
from ..services.registry import (
    create_participant,
    delete_participant,
    get_participant,
    list_admin_view,
    replace_exclusions,
    update_participant,
)
from .serializers import admin_view_dict, participant_dict

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


EXCLUSION_IDS_ERROR = "exclusion_ids must be a list of integers"


def _exclusion_ids(raw) -> list[int] | None:
    """None when raw is not a JSON list of integers."""
    if not isinstance(raw, list):
        return None
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in raw):
        return None
    return raw


class ParticipantsView(AdminRequiredMixin):
    def get(self):
        return jsonify([admin_view_dict(v) for v in list_admin_view()])

    def post(self):
        form = ParticipantCreateForm()
        if not form.validate_on_submit():
            return jsonify({"error": first_error(form)}), 400

        exclusion_ids = _exclusion_ids(_json_body().get("exclusion_ids", []))
        if exclusion_ids is None:
            return jsonify({"error": EXCLUSION_IDS_ERROR}), 400

        p = create_participant(form.name.data, form.pin.data, exclusion_ids)
        return jsonify(participant_dict(p)), 201


class ParticipantDetailView(AdminRequiredMixin):
    def patch(self, participant_id: int):
        form = ParticipantUpdateForm()
        if not form.validate_on_submit():
            return jsonify({"error": first_error(form)}), 400

        get_participant(participant_id)

        body = _json_body()
        new_exclusions = None
        if "exclusion_ids" in body:
            new_exclusions = _exclusion_ids(body["exclusion_ids"])
            if new_exclusions is None:
                return jsonify({"error": EXCLUSION_IDS_ERROR}), 400
            # Fail before the name/pin write rather than after it.
            for other_id in new_exclusions:
                get_participant(other_id)

        # Empty strings mean "leave unchanged".
        name = form.name.data or None
        pin = form.pin.data or None
        if name is not None or pin is not None:
            update_participant(participant_id, name=name, pin=pin)

        if new_exclusions is not None:
            replace_exclusions(participant_id, new_exclusions)

        return jsonify({"success": True})

    def delete(self, participant_id: int):
        delete_participant(participant_id)
        return jsonify({"success": True})


class ResetAssignmentsView(AdminRequiredMixin):
    def post(self):
        cleared = reset_assignments()
        return jsonify({"success": True, "cleared": cleared})


admin_bp.add_url_rule(
    "/participants",
    view_func=ParticipantsView.as_view("participants"),
    methods=["GET", "POST"],
)
admin_bp.add_url_rule(
    "/participants/<int:participant_id>",
    view_func=ParticipantDetailView.as_view("participant_detail"),
    methods=["PATCH", "DELETE"],
)
admin_bp.add_url_rule(
    "/assignments/reset",
    view_func=ResetAssignmentsView.as_view("reset_assignments"),
    methods=["POST"],
)
