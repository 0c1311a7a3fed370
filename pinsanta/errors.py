from __future__ import annotations


class SantaError(RuntimeError):
    """Base for failures the services report to their callers.

    ``code`` is a stable machine-readable string and ``status_code`` the HTTP
    status the JSON layer answers with.
    """
    code = "santa_error"
    status_code = 400

    def to_dict(self) -> dict[str, str]:
        return {"error": str(self), "code": self.code}


class InvalidParticipant(SantaError):
    code = "invalid_participant"
    status_code = 400


class DuplicatePin(SantaError):
    code = "duplicate_pin"
    status_code = 409

    def __init__(self, pin: str):
        super().__init__("This PIN is already in use.")
        self.pin = pin


class UnknownParticipant(SantaError):
    code = "unknown_participant"
    status_code = 404

    def __init__(self, participant_id: int):
        super().__init__(f"Participant {participant_id} does not exist.")
        self.participant_id = participant_id


class ReferencedAsTarget(SantaError):
    code = "referenced_as_target"
    status_code = 409

    def __init__(self, participant_id: int, assigner_name: str):
        super().__init__(
            f"Cannot delete: this participant is already {assigner_name}'s secret santa target."
        )
        self.participant_id = participant_id
        self.assigner_name = assigner_name


class NoEligibleTarget(SantaError):
    """Structural: the exclusions leave nobody for this requester. An admin has to step in."""
    code = "no_eligible_target"
    status_code = 409

    def __init__(self, requester_id: int):
        super().__init__("No compatible participants are left to assign. Ask the organizer to review exclusions.")
        self.requester_id = requester_id


class AssignmentConflict(SantaError):
    code = "assignment_conflict"
    status_code = 503

    def __init__(self, requester_id: int):
        super().__init__("Too many simultaneous assignments, please try again.")
        self.requester_id = requester_id
