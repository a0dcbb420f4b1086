"""Error taxonomy for the progression engine"""

class ProgressionError(Exception):
    """Base class for progression engine errors"""

class PersistenceFailure(ProgressionError):
    """A write to the profile store failed; in-memory state stays authoritative"""

class InvalidAction(ProgressionError):
    """The requested action is not allowed in the current state"""

class InsufficientPoints(InvalidAction):
    """A spend would bring the point balance below zero"""

    def __init__(self, balance: int, cost: int):
        super().__init__(f"Balance {balance} is below cost {cost}")
        self.balance = balance
        self.cost = cost

class CollaboratorUnavailable(ProgressionError):
    """An external collaborator (player, AI service, HTTP API) failed"""
