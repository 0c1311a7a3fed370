from __future__ import annotations

import logging
import random

from flask import current_app
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError

from ..errors import AssignmentConflict, NoEligibleTarget, UnknownParticipant
from ..extensions import db
from ..models import Exclusion, Participant

logger = logging.getLogger(__name__)

_system_random = random.SystemRandom()


def eligible_targets(requester_id: int) -> list[Participant]:
    """
    Everyone the requester may still draw:
      not themselves,
      not already someone else's target,
      not excluded with the requester.
    Ordered by id so a seeded RNG gives repeatable draws.
    """
    claimed = select(Participant.target_id).where(Participant.target_id.is_not(None))
    excluded = select(Exclusion.excluded_with_id).where(Exclusion.participant_id == requester_id)

    stmt = (
        select(Participant)
        .where(
            Participant.id != requester_id,
            Participant.id.not_in(claimed),
            Participant.id.not_in(excluded),
        )
        .order_by(Participant.id.asc())
    )
    return list(db.session.execute(stmt).scalars())


def assignment_pairs() -> dict[int, int]:
    rows = db.session.execute(
        select(Participant.id, Participant.target_id).where(Participant.target_id.is_not(None))
    )
    return {giver_id: target_id for giver_id, target_id in rows}


def _assign_once(requester_id: int, rng: random.Random) -> Participant | None:
    """One read/draw/commit pass. Returns None when a concurrent write invalidated the draw."""
    requester = db.session.get(Participant, requester_id, with_for_update=True, populate_existing=True)
    if requester is None:
        db.session.rollback()
        raise UnknownParticipant(requester_id)

    # Already drawn: hand back the stored target, never re-roll.
    if requester.target_id is not None:
        target = db.session.get(Participant, requester.target_id)
        db.session.commit()
        return target

    eligible = eligible_targets(requester_id)
    if not eligible:
        db.session.rollback()
        logger.warning("No eligible target left for participant %s", requester_id)
        raise NoEligibleTarget(requester_id)

    chosen = eligible[rng.randrange(len(eligible))]
    chosen_id = chosen.id

    # Compare-and-commit: the write only lands if the requester is still unassigned
    # and no exclusion between the two was stored since the eligible set was read.
    # A target claimed in the meantime trips the unique constraint instead.
    excluded_since = exists().where(
        Exclusion.participant_id == requester_id,
        Exclusion.excluded_with_id == chosen_id,
    )
    result = db.session.execute(
        update(Participant)
        .where(
            Participant.id == requester_id,
            Participant.target_id.is_(None),
            ~excluded_since,
        )
        .values(target_id=chosen_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.session.rollback()
        requester = db.session.get(Participant, requester_id, populate_existing=True)
        if requester is None:
            raise UnknownParticipant(requester_id)
        if requester.target_id is None:
            # The pair became excluded; draw again.
            return None
        # Another request for the same participant committed first; theirs stands.
        target = db.session.get(Participant, requester.target_id)
        db.session.commit()
        return target

    db.session.commit()
    logger.info("Assigned a target to participant %s (%d candidates)", requester_id, len(eligible))
    return db.session.get(Participant, chosen_id)


def assign(requester_id: int, rng: random.Random | None = None) -> Participant:
    """
    Return requester_id's target, drawing one uniformly at random if none is stored yet.

    The draw is irrevocable: once committed it is returned on every later call.
    If a concurrent request claims the drawn target first (the unique constraint
    on target_id rejects our write), or an exclusion between the pair is stored
    while we draw, the read/draw is redone up to SANTA_ASSIGN_ATTEMPTS times.
    """
    rng = rng or _system_random
    attempts = max(1, int(current_app.config.get("SANTA_ASSIGN_ATTEMPTS", 3)))

    for attempt in range(1, attempts + 1):
        try:
            target = _assign_once(requester_id, rng)
        except IntegrityError:
            db.session.rollback()
            target = None
        if target is not None:
            return target
        logger.warning(
            "Draw invalidated by a concurrent write for participant %s (attempt %d/%d)",
            requester_id, attempt, attempts,
        )

    raise AssignmentConflict(requester_id)


def reset_assignments() -> int:
    """
    Admin action: clear every stored target so a new round can be drawn.
    Returns how many assignments were cleared.
    """
    try:
        result = db.session.execute(
            update(Participant)
            .where(Participant.target_id.is_not(None))
            .values(target_id=None)
            .execution_options(synchronize_session=False)
        )
        cleared = result.rowcount
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Cleared %d assignments", cleared)
    return cleared
