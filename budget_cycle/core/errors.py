"""Exception hierarchy for the Budget Cycle Engine."""


class BudgetEngineError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationMissingError(BudgetEngineError):
    """No primary (or pay-day bearing) income source exists to anchor a cycle."""


class CycleNotInitializedError(BudgetEngineError):
    """The viewed cycle has no BudgetCycle record yet; it must be set up first."""

    def __init__(self, cycle_key: str) -> None:
        """Initialize with the key of the cycle that still needs setting up."""
        super().__init__(f"Cycle {cycle_key} has not been set up")
        self.cycle_key = cycle_key


class TransportError(BudgetEngineError):
    """A read or write to the external data service failed."""


class HistoryEmptyError(BudgetEngineError):
    """Undo or redo was requested with nothing on the corresponding stack."""


class InvalidSetupModeError(BudgetEngineError, ValueError):
    """A cycle setup was requested with a mode other than 'fresh' or 'copy'."""


class OccurrenceNotFoundError(BudgetEngineError, KeyError):
    """A ledger operation named an occurrence key that is not scheduled in the current cycle."""

    def __init__(self, key: str) -> None:
        """Initialize with the unknown occurrence key."""
        super().__init__(f"No occurrence with key {key} in this cycle")
        self.key = key

    def __str__(self) -> str:
        """Plain message; KeyError would quote it."""
        return str(self.args[0])
