"""Repository modules for database access."""

from repositories.ballot_repository import BallotRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "BallotRepository",
    "VoteRepository",
]
