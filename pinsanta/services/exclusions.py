from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select

from ..errors import UnknownParticipant
from ..extensions import db
from ..models import Exclusion, Participant

logger = logging.getLogger(__name__)


def list_for(participant_id: int) -> set[int]:
    """Ids that participant_id may never be paired with, in either direction."""
    rows = db.session.execute(
        select(Exclusion.excluded_with_id).where(Exclusion.participant_id == participant_id)
    ).scalars()
    return set(rows)


def is_excluded_pair(a: int, b: int) -> bool:
    row = db.session.execute(
        select(Exclusion.participant_id).where(
            Exclusion.participant_id == a, Exclusion.excluded_with_id == b
        )
    ).first()
    return row is not None


def exclusion_pairs() -> set[frozenset[int]]:
    rows = db.session.execute(select(Exclusion.participant_id, Exclusion.excluded_with_id))
    return {frozenset(row) for row in rows}


def add_pairs(participant_id: int, ids: Iterable[int]) -> set[int]:
    """
    Stages both directed rows for each id; returns the ids actually stored.
    Self references and duplicates are dropped. Caller owns the transaction.
    """
    wanted = {int(i) for i in ids}
    wanted.discard(participant_id)

    if wanted:
        known = set(
            db.session.execute(select(Participant.id).where(Participant.id.in_(wanted))).scalars()
        )
        missing = sorted(wanted - known)
        if missing:
            raise UnknownParticipant(missing[0])

    for other_id in wanted:
        db.session.add(Exclusion(participant_id=participant_id, excluded_with_id=other_id))
        db.session.add(Exclusion(participant_id=other_id, excluded_with_id=participant_id))
    return wanted


def clear_pairs(participant_id: int) -> None:
    """Stages removal of every row touching participant_id. Caller owns the transaction."""
    Exclusion.query.filter(
        (Exclusion.participant_id == participant_id) | (Exclusion.excluded_with_id == participant_id)
    ).delete()


def replace_for(participant_id: int, new_ids: Iterable[int]) -> set[int]:
    """
    Full replace, not a merge:
      every directed row touching participant_id is removed,
      then each id in new_ids is stored in both directions.
    Unknown ids raise UnknownParticipant and nothing is written.
    """
    # Row lock serializes with assign(), which locks the requester row the same way.
    owner = db.session.get(Participant, participant_id, with_for_update=True, populate_existing=True)
    if owner is None:
        db.session.rollback()
        raise UnknownParticipant(participant_id)

    try:
        clear_pairs(participant_id)
        stored = add_pairs(participant_id, new_ids)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Replaced exclusions for participant %s (%d pairs)", participant_id, len(stored))
    return stored
