"""Tests for the schema converters."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from models.ballot import BallotKind
from schemas.ballot import PollStateEnum
from schemas.converters import ballot_model_to_schema, tally_to_referendum_schema, tally_to_schema
from services.tally_service import ChoiceTally, Tally

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


class TestBallotModelToSchema:
    """Tests for ballot_model_to_schema converter."""

    @pytest.fixture
    def mock_choice(self):
        """Create a mock ballot choice."""

        def _create_choice(key: str, vote_count: int, order: int = 0):
            choice = MagicMock()
            choice.choice_key = key
            choice.label = key.title()
            choice.vote_count = vote_count
            choice.order = order
            return choice

        return _create_choice

    @pytest.fixture
    def mock_ballot(self, mock_choice):
        """Create a mock poll ballot."""
        ballot = MagicMock()
        ballot.id = "ballot-123"
        ballot.kind = BallotKind.POLL.value
        ballot.scope_id = "poll-1"
        ballot.title = "Favourite fruit"
        ballot.created_at = NOW - timedelta(hours=1)
        ballot.expires_at = NOW + timedelta(minutes=30)
        ballot.choices = [mock_choice("pear", 1, order=1), mock_choice("apple", 3, order=0)]
        ballot.total_votes = 4
        return ballot

    def test_active_poll(self, mock_ballot) -> None:
        result = ballot_model_to_schema(mock_ballot, NOW)

        assert result.id == "ballot-123"
        assert result.kind == BallotKind.POLL
        assert result.state == PollStateEnum.ACTIVE
        assert result.time_remaining_seconds == 1800
        assert result.total_votes == 4

    def test_choices_sorted_by_order(self, mock_ballot) -> None:
        result = ballot_model_to_schema(mock_ballot, NOW)
        assert [c.key for c in result.choices] == ["apple", "pear"]

    def test_expired_poll(self, mock_ballot) -> None:
        result = ballot_model_to_schema(mock_ballot, NOW + timedelta(hours=1))

        assert result.state == PollStateEnum.EXPIRED
        assert result.time_remaining_seconds == 0

    def test_non_poll_has_no_state(self, mock_ballot) -> None:
        mock_ballot.kind = BallotKind.DISTRICT_ELECTION.value
        mock_ballot.expires_at = None

        result = ballot_model_to_schema(mock_ballot, NOW)

        assert result.state is None
        assert result.time_remaining_seconds is None


class TestTallyConverters:
    """Tests for tally converters."""

    def test_tally_to_schema(self) -> None:
        tally = Tally(
            kind=BallotKind.POLL,
            scope_id="poll-1",
            choices=[ChoiceTally("a", "A", 1, 25.0), ChoiceTally("b", "B", 3, 75.0)],
        )

        result = tally_to_schema(tally)

        assert result.total_votes == 4
        assert [(r.choice, r.vote_count, r.vote_percentage) for r in result.results] == [
            ("a", 1, 25.0),
            ("b", 3, 75.0),
        ]

    def test_referendum_without_votes(self) -> None:
        tally = Tally(
            kind=BallotKind.REFERENDUM,
            scope_id="national",
            choices=[ChoiceTally("yes", "Yes", 0, 0.0), ChoiceTally("no", "No", 0, 0.0)],
        )

        result = tally_to_referendum_schema(tally)

        assert (result.yes_votes, result.no_votes, result.total_votes) == (0, 0, 0)
        assert (result.yes_percentage, result.no_percentage) == (0.0, 0.0)
