"""
Homomorphic vote tally.

Summing the vote commitments of every ballot gives a commitment to the yes
weight; summing the value commitments gives a commitment to the total weight.
The coordinator who builds Exec collects the voters' openings and sums them
the same way, so the Exec proof's win/total commitments can be compared with
the tally point for point.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from zk.pedersen import SUBGROUP_ORDER, EdwardsPoint, sum_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteOpening:
    """What a voter hands the coordinator so the totals can be opened"""
    vote_option: int
    value: int
    vote_blind: int
    value_blind: int

    @property
    def weighted_value(self) -> int:
        return self.vote_option * self.value


@dataclass(frozen=True)
class TallyOpening:
    win_votes: int
    total_votes: int
    win_votes_blind: int
    total_votes_blind: int


def sum_openings(openings: Iterable[VoteOpening]) -> TallyOpening:
    win_votes = 0
    total_votes = 0
    win_votes_blind = 0
    total_votes_blind = 0

    for opening in openings:
        win_votes += opening.weighted_value
        total_votes += opening.value
        win_votes_blind = (win_votes_blind + opening.vote_blind) % SUBGROUP_ORDER
        total_votes_blind = (total_votes_blind + opening.value_blind) % SUBGROUP_ORDER

    return TallyOpening(win_votes, total_votes, win_votes_blind, total_votes_blind)


@dataclass(frozen=True)
class VoteRecord:
    """Public outputs of one accepted Vote proof"""
    token_commit: int
    proposal_bulla: int
    vote_commit: EdwardsPoint
    value_commit: EdwardsPoint

    @staticmethod
    def from_public_inputs(public_inputs: Any) -> 'VoteRecord':
        record = VoteRecord(
            token_commit=public_inputs.token_commit,
            proposal_bulla=public_inputs.proposal_bulla,
            vote_commit=EdwardsPoint(public_inputs.vote_commit_x, public_inputs.vote_commit_y),
            value_commit=EdwardsPoint(public_inputs.value_commit_x, public_inputs.value_commit_y),
        )
        if not (record.vote_commit.is_on_curve() and record.value_commit.is_on_curve()):
            raise ValueError("Vote commitments must be curve points")
        return record

    @staticmethod
    def from_call(call) -> 'VoteRecord':
        return VoteRecord.from_public_inputs(call.call_data)


@dataclass
class VoteTally:
    """Running sums of the vote records cast on one proposal"""
    proposal_bulla: int
    win_votes_commit: EdwardsPoint = field(default_factory=EdwardsPoint.identity)
    total_votes_commit: EdwardsPoint = field(default_factory=EdwardsPoint.identity)
    records: List[VoteRecord] = field(default_factory=list)

    def add(self, record: VoteRecord):
        if record.proposal_bulla != self.proposal_bulla:
            raise ValueError(
                f"Vote for proposal {hex(record.proposal_bulla)} does not belong "
                f"to tally of {hex(self.proposal_bulla)}")

        self.win_votes_commit = self.win_votes_commit + record.vote_commit
        self.total_votes_commit = self.total_votes_commit + record.value_commit
        self.records.append(record)
        logger.debug(f"Tallied vote {len(self.records)} for proposal {hex(self.proposal_bulla)}")

    @classmethod
    def from_records(cls, proposal_bulla: int, records: Iterable[VoteRecord]) -> 'VoteTally':
        records = list(records)
        for record in records:
            if record.proposal_bulla != proposal_bulla:
                raise ValueError(
                    f"Vote for proposal {hex(record.proposal_bulla)} does not belong "
                    f"to tally of {hex(proposal_bulla)}")

        return cls(
            proposal_bulla=proposal_bulla,
            win_votes_commit=sum_points(r.vote_commit for r in records),
            total_votes_commit=sum_points(r.value_commit for r in records),
            records=records,
        )

    @property
    def vote_count(self) -> int:
        return len(self.records)

    def matches(self, win_votes_commit: EdwardsPoint, total_votes_commit: EdwardsPoint) -> bool:
        return (self.win_votes_commit == win_votes_commit
                and self.total_votes_commit == total_votes_commit)
