"""Exception hierarchy for circuit construction, key generation and proving."""


class PlonkError(ValueError):
    """Base class for all proving-system errors."""


class ConstraintSystemError(PlonkError):
    """Circuit wiring is inconsistent with the constraint system."""


class WitnessError(PlonkError):
    """A witness value is required but not available."""


class NotEnoughRowsError(WitnessError):
    """An assignment falls outside the usable rows of the table."""

    def __init__(self, row: int, usable_rows: int, what: str = "cell") -> None:
        super().__init__(f"{what} at row {row} does not fit in {usable_rows} usable rows")
        self.row = row
        self.usable_rows = usable_rows


class KeyBuildError(PlonkError):
    """Proving or verifying key could not be derived."""


class ProofCreationError(PlonkError):
    """The witness does not satisfy the circuit for the given instances."""


class ProofFormatError(PlonkError):
    """Proof bytes are truncated, over-long or non-canonical."""
