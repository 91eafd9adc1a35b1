"""
Ballot kind catalogue.

Static per-kind rules: which choices are valid, how "one vote per voter" is
scoped, and whether the ballot is time-bounded.
"""

from dataclasses import dataclass
from typing import Optional

from models.ballot import BallotKind

# Scope id used by the single national party and referendum ballots
NATIONAL_SCOPE = "national"

# Exclusivity scope shared by every district of the national election
NATIONAL_ELECTION_SCOPE = "national-election"

ISSUE_SUPPORT_CHOICE = "support"

REFERENDUM_CHOICES: tuple[tuple[str, str], ...] = (
    ("yes", "Yes"),
    ("no", "No"),
)

POLITICAL_PARTIES: tuple[tuple[str, str], ...] = (
    ("awami-league", "Bangladesh Awami League"),
    ("bnp", "Bangladesh Nationalist Party"),
    ("jatiya-party", "Jatiya Party"),
    ("jamaat", "Jamaat-e-Islami"),
    ("jsd", "Jatiya Samajtantrik Dal"),
    ("cpp", "Communist Party"),
    ("others", "Others / Independent"),
)


@dataclass(frozen=True)
class BallotRule:
    """Rules for one ballot kind."""

    kind: BallotKind
    # (key, label) pairs; None when the choice set comes from the live ballot
    fixed_choices: Optional[tuple[tuple[str, str], ...]]
    # Exclusivity scope shared by all ballots of this kind (None = per scope)
    shared_exclusivity_scope: Optional[str] = None
    requires_expiry: bool = False
    # Scope id every ballot of this kind must use (None = any)
    fixed_scope_id: Optional[str] = None

    @property
    def has_fixed_choices(self) -> bool:
        return self.fixed_choices is not None

    @property
    def fixed_choice_keys(self) -> list[str]:
        return [key for key, _ in self.fixed_choices or ()]


BALLOT_RULES: dict[BallotKind, BallotRule] = {
    BallotKind.ISSUE_SUPPORT: BallotRule(
        kind=BallotKind.ISSUE_SUPPORT,
        fixed_choices=((ISSUE_SUPPORT_CHOICE, "Support"),),
    ),
    BallotKind.POLL: BallotRule(
        kind=BallotKind.POLL,
        fixed_choices=None,
        requires_expiry=True,
    ),
    BallotKind.PARTY_PREFERENCE: BallotRule(
        kind=BallotKind.PARTY_PREFERENCE,
        fixed_choices=POLITICAL_PARTIES,
        fixed_scope_id=NATIONAL_SCOPE,
    ),
    BallotKind.DISTRICT_ELECTION: BallotRule(
        kind=BallotKind.DISTRICT_ELECTION,
        fixed_choices=None,
        shared_exclusivity_scope=NATIONAL_ELECTION_SCOPE,
    ),
    BallotKind.REFERENDUM: BallotRule(
        kind=BallotKind.REFERENDUM,
        fixed_choices=REFERENDUM_CHOICES,
        fixed_scope_id=NATIONAL_SCOPE,
    ),
}


def get_rule(kind: BallotKind | str) -> BallotRule:
    """Look up the rule for a ballot kind."""
    return BALLOT_RULES[BallotKind(kind)]
