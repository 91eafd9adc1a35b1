"""
Ballot engine exceptions.

Business rejections of a vote (already voted, poll expired, unknown ballot,
invalid choice) are returned as ``VoteOutcome`` values, not raised. The
exceptions here cover registration errors and infrastructure faults.
"""


class BallotEngineError(Exception):
    """Base class for all ballot engine errors."""


class UnknownDomain(BallotEngineError):
    """No ballot exists for the requested kind and scope."""

    def __init__(self, kind: str, scope_id: str):
        super().__init__(f"No {kind} ballot for scope '{scope_id}'")
        self.kind = kind
        self.scope_id = scope_id


class InvalidChoice(BallotEngineError):
    """The submitted choice is not in the ballot's current choice set."""

    def __init__(self, choice: str, scope_id: str):
        super().__init__(f"'{choice}' is not a valid choice for scope '{scope_id}'")
        self.choice = choice
        self.scope_id = scope_id


class InvalidDomainDefinition(BallotEngineError):
    """A ballot registration request violates the rules of its kind."""


class DomainAlreadyExists(BallotEngineError):
    """A ballot with the same kind and scope is already registered."""

    def __init__(self, kind: str, scope_id: str):
        super().__init__(f"{kind} ballot '{scope_id}' already exists")
        self.kind = kind
        self.scope_id = scope_id


class StorageFailure(BallotEngineError):
    """
    Infrastructure fault while reading or writing ballot state.

    The only error kind a caller may retry.
    """
