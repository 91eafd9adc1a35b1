"""Database models module."""

from models.ballot import Ballot, BallotChoice, BallotKind
from models.vote import VoteOutcome, VoteRecord

__all__ = [
    "Ballot",
    "BallotChoice",
    "BallotKind",
    "VoteOutcome",
    "VoteRecord",
]
