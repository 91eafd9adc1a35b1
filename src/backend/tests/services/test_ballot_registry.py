"""
Tests for ballot registration and lookup.
"""

from datetime import timedelta

import pytest

from core.exceptions import DomainAlreadyExists, InvalidChoice, InvalidDomainDefinition, UnknownDomain
from db.types import utcnow
from models.ballot import BallotKind
from services.ballot_registry import BallotRegistry, ChoiceSpec
from services.ballot_rules import POLITICAL_PARTIES


def _options(*keys: str) -> list[ChoiceSpec]:
    return [ChoiceSpec(label=f"Option {key}", key=key) for key in keys]


@pytest.mark.integration
class TestRegisterDomain:
    """Test BallotRegistry.register_domain rules."""

    async def test_register_poll(self, session_factory) -> None:
        expires_at = utcnow() + timedelta(hours=2)
        async with session_factory() as session:
            ballot = await BallotRegistry(session).register_domain(
                BallotKind.POLL, "poll-1", _options("a", "b"), expires_at=expires_at, title="Lunch?"
            )

        assert ballot.kind == BallotKind.POLL.value
        assert [c.choice_key for c in ballot.choices] == ["a", "b"]
        assert ballot.expires_at == expires_at
        assert ballot.title == "Lunch?"

    async def test_poll_choice_keys_generated(self, session_factory) -> None:
        async with session_factory() as session:
            ballot = await BallotRegistry(session).register_domain(
                BallotKind.POLL,
                "poll-gen",
                [ChoiceSpec(label="Tea"), ChoiceSpec(label="Coffee")],
                expires_at=utcnow() + timedelta(hours=2),
            )

        keys = [c.choice_key for c in ballot.choices]
        assert len(set(keys)) == 2
        assert [c.label for c in ballot.choices] == ["Tea", "Coffee"]

    @pytest.mark.parametrize("keys", [("a",), ("a", "b", "c", "d", "e", "f", "g")])
    async def test_poll_option_count_bounds(self, session_factory, keys) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(
                    BallotKind.POLL, "poll-x", _options(*keys), expires_at=utcnow() + timedelta(hours=2)
                )

    async def test_poll_requires_expiry(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(BallotKind.POLL, "poll-x", _options("a", "b"))

    async def test_poll_expiry_beyond_one_week(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(
                    BallotKind.POLL, "poll-x", _options("a", "b"), expires_at=utcnow() + timedelta(days=8)
                )

    async def test_duplicate_choice_keys(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(
                    BallotKind.POLL, "poll-x", _options("a", "a"), expires_at=utcnow() + timedelta(hours=2)
                )

    async def test_non_poll_cannot_expire(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(
                    BallotKind.ISSUE_SUPPORT, "case-1", expires_at=utcnow() + timedelta(hours=2)
                )

    async def test_issue_support_gets_fixed_choice(self, session_factory) -> None:
        async with session_factory() as session:
            ballot = await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "case-1")

        assert [c.choice_key for c in ballot.choices] == ["support"]
        assert ballot.expires_at is None

    async def test_fixed_choices_cannot_be_replaced(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "case-1", _options("oppose"))

    async def test_national_kinds_need_national_scope(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(BallotKind.REFERENDUM, "regional")

    async def test_district_needs_candidates(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(BallotKind.DISTRICT_ELECTION, "dhaka-1", [])

    async def test_empty_scope_rejected(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(InvalidDomainDefinition):
                await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "  ")

    async def test_duplicate_registration(self, session_factory) -> None:
        async with session_factory() as session:
            await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "case-1")

        async with session_factory() as session:
            with pytest.raises(DomainAlreadyExists):
                await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "case-1")

    async def test_same_scope_different_kind_allowed(self, session_factory) -> None:
        async with session_factory() as session:
            await BallotRegistry(session).register_domain(BallotKind.ISSUE_SUPPORT, "shared-id")
            await BallotRegistry(session).register_domain(
                BallotKind.DISTRICT_ELECTION, "shared-id", _options("c1", "c2")
            )


@pytest.mark.integration
class TestLookup:
    """Test lookup, choice validation and listing."""

    async def test_get_unknown_domain(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(UnknownDomain):
                await BallotRegistry(session).get_domain(BallotKind.ISSUE_SUPPORT, "case-404")

    async def test_validate_choice(self, session_factory, register_ballot) -> None:
        await register_ballot(BallotKind.DISTRICT_ELECTION, "dhaka-1", choices=["c1", "c2"])

        async with session_factory() as session:
            registry = BallotRegistry(session)
            ballot = await registry.get_domain(BallotKind.DISTRICT_ELECTION, "dhaka-1")
            assert registry.validate_choice(ballot, "c2").choice_key == "c2"
            with pytest.raises(InvalidChoice):
                registry.validate_choice(ballot, "c9")

    async def test_list_polls_active_first(self, session_factory, register_ballot) -> None:
        now = utcnow()
        await register_ballot(BallotKind.POLL, "soon", ["a", "b"], expires_at=now + timedelta(hours=1), now=now)
        await register_ballot(BallotKind.POLL, "later", ["a", "b"], expires_at=now + timedelta(hours=5), now=now)
        await register_ballot(BallotKind.POLL, "closing", ["a", "b"], expires_at=now + timedelta(hours=3), now=now)

        async with session_factory() as session:
            ballots = await BallotRegistry(session).list_domains(BallotKind.POLL, now=now + timedelta(hours=2))

        assert [b.scope_id for b in ballots] == ["later", "closing", "soon"]

    async def test_list_other_kind_is_empty(self, session_factory, register_poll) -> None:
        await register_poll("p", ["a", "b"])
        async with session_factory() as session:
            assert await BallotRegistry(session).list_domains(BallotKind.ISSUE_SUPPORT) == []


@pytest.mark.integration
class TestEnsureNationalBallots:
    """Test ensure_national_ballots."""

    async def test_creates_party_and_referendum(self, session_factory) -> None:
        async with session_factory() as session:
            ballots = await BallotRegistry(session).ensure_national_ballots()

        assert [(b.kind, b.scope_id) for b in ballots] == [
            (BallotKind.PARTY_PREFERENCE.value, "national"),
            (BallotKind.REFERENDUM.value, "national"),
        ]
        assert [c.choice_key for c in ballots[0].choices] == [key for key, _ in POLITICAL_PARTIES]
        assert [c.choice_key for c in ballots[1].choices] == ["yes", "no"]

    async def test_is_idempotent(self, session_factory) -> None:
        async with session_factory() as session:
            first = await BallotRegistry(session).ensure_national_ballots()
        async with session_factory() as session:
            second = await BallotRegistry(session).ensure_national_ballots()

        assert [b.id for b in first] == [b.id for b in second]
