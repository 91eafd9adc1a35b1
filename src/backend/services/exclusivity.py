"""
Exclusivity scope resolution.

The vote ledger enforces one vote per (kind, exclusivity scope, fingerprint).
For most kinds the exclusivity scope is the ballot's own scope id; district
elections share a single nationwide scope so a voter can act in only one
district. No other code path is involved in cross-district exclusivity.
"""

from models.ballot import BallotKind
from services.ballot_rules import get_rule


def exclusivity_scope_for(kind: BallotKind | str, scope_id: str) -> str:
    """Return the exclusivity scope a vote on ``(kind, scope_id)`` falls in."""
    rule = get_rule(kind)
    return rule.shared_exclusivity_scope or scope_id