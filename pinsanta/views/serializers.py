from __future__ import annotations

from dataclasses import asdict

from ..models import Participant
from ..services.registry import AdminParticipantView


def participant_dict(p: Participant) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "pin": p.pin,
        "has_target": p.target_id is not None,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


def admin_view_dict(view: AdminParticipantView) -> dict:
    return asdict(view)


def player_status(p: Participant) -> dict:
    # What a logged-in player may see about themselves: never other players' PINs.
    return {
        "id": p.id,
        "name": p.name,
        "has_target": p.target_id is not None,
        "target_name": p.target.name if p.target_id is not None else None,
    }
