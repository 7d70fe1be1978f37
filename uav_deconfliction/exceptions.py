class DeconflictionError(Exception):
    """Base class for all errors raised by the deconfliction core."""


class InvalidInputError(DeconflictionError, ValueError):
    """A call was made with arguments that violate its preconditions."""


class ConflictCheckError(DeconflictionError):
    """Scanning one pair of trajectories failed, so the mission result is unknown."""

    def __init__(self, primary_id: str, other_id: str, message: str):
        super().__init__(f"Conflict check {primary_id} vs {other_id} failed: {message}")
        self.primary_id = primary_id
        self.other_id = other_id
