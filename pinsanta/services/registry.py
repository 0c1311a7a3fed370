from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..errors import DuplicatePin, InvalidParticipant, ReferencedAsTarget, UnknownParticipant
from ..extensions import db
from ..models import Exclusion, Participant
from ..security import is_valid_pin
from . import exclusions

logger = logging.getLogger(__name__)


@dataclass
class AdminParticipantView:
    id: int
    name: str
    pin: str
    has_target: bool
    target_name: str | None
    exclusion_ids: list[int] = field(default_factory=list)
    exclusion_names: list[str] = field(default_factory=list)


def _clean_name(name) -> str:
    name = (name or "").strip() if isinstance(name, str) else ""
    if not name:
        raise InvalidParticipant("Name is required.")
    if len(name) > 64:
        raise InvalidParticipant("Name must be at most 64 characters.")
    return name


def _check_pin(pin) -> str:
    if not is_valid_pin(pin):
        raise InvalidParticipant("PIN must be exactly 4 digits.")
    return pin


# --------- Reads ----------

def find_by_pin(pin: str) -> Participant | None:
    if not is_valid_pin(pin):
        return None
    return Participant.query.filter_by(pin=pin).first()


def find_by_id(participant_id: int) -> Participant | None:
    return db.session.get(Participant, participant_id)


def get_participant(participant_id: int) -> Participant:
    p = find_by_id(participant_id)
    if p is None:
        raise UnknownParticipant(participant_id)
    return p


def list_participants() -> list[Participant]:
    return Participant.query.order_by(Participant.name.asc(), Participant.id.asc()).all()


def is_pin_taken(pin: str, exclude_id: int | None = None) -> bool:
    q = Participant.query.filter(Participant.pin == pin)
    if exclude_id is not None:
        q = q.filter(Participant.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def is_target_of_anyone(participant_id: int) -> bool:
    return _assigner_of(participant_id) is not None


def _assigner_of(participant_id: int) -> Participant | None:
    return Participant.query.filter_by(target_id=participant_id).first()


def list_admin_view() -> list[AdminParticipantView]:
    """Every participant with target status and resolved exclusions, ordered by name."""
    target = aliased(Participant)
    rows = db.session.execute(
        select(Participant, target.name)
        .outerjoin(target, Participant.target_id == target.id)
        .order_by(Participant.name.asc(), Participant.id.asc())
    ).all()

    other = aliased(Participant)
    excluded: dict[int, list[tuple[int, str]]] = {}
    for pid, oid, oname in db.session.execute(
        select(Exclusion.participant_id, other.id, other.name)
        .join(other, Exclusion.excluded_with_id == other.id)
        .order_by(other.name.asc(), other.id.asc())
    ):
        excluded.setdefault(pid, []).append((oid, oname))

    views = []
    for p, target_name in rows:
        pairs = excluded.get(p.id, [])
        views.append(
            AdminParticipantView(
                id=p.id,
                name=p.name,
                pin=p.pin,
                has_target=p.target_id is not None,
                target_name=target_name,
                exclusion_ids=[oid for oid, _ in pairs],
                exclusion_names=[oname for _, oname in pairs],
            )
        )
    return views


# --------- Writes ----------

def create_participant(name: str, pin: str, exclusion_ids: Iterable[int] = ()) -> Participant:
    name = _clean_name(name)
    pin = _check_pin(pin)

    if is_pin_taken(pin):
        raise DuplicatePin(pin)

    p = Participant(name=name, pin=pin)
    try:
        db.session.add(p)
        db.session.flush()
        exclusions.add_pairs(p.id, exclusion_ids)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        # Lost a race with another create/update using the same PIN.
        raise DuplicatePin(pin) from e
    except Exception:
        db.session.rollback()
        raise

    logger.info("Created participant %s", p.id)
    return p


def update_participant(participant_id: int, name: str | None = None, pin: str | None = None) -> Participant:
    """
    Partial update: a field left as None keeps its stored value.
    """
    p = get_participant(participant_id)

    if name is not None:
        name = _clean_name(name)
    if pin is not None:
        pin = _check_pin(pin)
        if is_pin_taken(pin, exclude_id=p.id):
            raise DuplicatePin(pin)

    if name is None and pin is None:
        return p

    try:
        if name is not None:
            p.name = name
        if pin is not None:
            p.pin = pin
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicatePin(pin) from e

    logger.info("Updated participant %s", p.id)
    return p


def replace_exclusions(participant_id: int, exclusion_ids: Iterable[int]) -> set[int]:
    return exclusions.replace_for(participant_id, exclusion_ids)


def delete_participant(participant_id: int) -> None:
    p = db.session.get(Participant, participant_id, with_for_update=True, populate_existing=True)
    if p is None:
        db.session.rollback()
        raise UnknownParticipant(participant_id)

    assigner = _assigner_of(participant_id)
    if assigner is not None:
        assigner_name = assigner.name
        db.session.rollback()
        raise ReferencedAsTarget(participant_id, assigner_name)

    try:
        exclusions.clear_pairs(p.id)
        db.session.delete(p)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        # The foreign key on target_id caught an assignment committed after the check above.
        assigner = _assigner_of(participant_id)
        if assigner is None:
            raise
        raise ReferencedAsTarget(participant_id, assigner.name) from e
    except Exception:
        db.session.rollback()
        raise

    logger.info("Deleted participant %s", participant_id)
