from datetime import datetime
from flask_login import UserMixin
from .extensions import db, login_manager

class Participant(UserMixin, db.Model):
    __tablename__ = "participants"
    # Ids are never reused, even after deletes.
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(64), nullable=False)

    # 4-digit numeric string; doubles as the player's login credential.
    pin = db.Column(db.String(4), unique=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # --- Assignment ---
    # Set once by the assignment engine, never by an admin edit.
    # Unique: each participant is the target of at most one assigner.
    target_id = db.Column(db.Integer, db.ForeignKey("participants.id"), unique=True, nullable=True)
    target = db.relationship(
        "Participant",
        remote_side=[id],
        foreign_keys=[target_id],
        uselist=False,
        post_update=True,
    )

    def __repr__(self) -> str:
        return f"<Participant {self.id} {self.name!r}>"


class Exclusion(db.Model):
    """
    One direction of a symmetric constraint: participant_id and excluded_with_id
    may never be paired as assigner/target. Always written and removed together
    with the mirrored row (see services.exclusions).
    """
    __tablename__ = "exclusions"

    participant_id = db.Column(
        db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True
    )
    excluded_with_id = db.Column(
        db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True
    )

    participant = db.relationship("Participant", foreign_keys=[participant_id])
    excluded_with = db.relationship("Participant", foreign_keys=[excluded_with_id])

    __table_args__ = (
        db.CheckConstraint("participant_id != excluded_with_id", name="no_self_exclusion"),
    )


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Participant, int(user_id))
