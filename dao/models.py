"""
Governance records and their bullas.

A bulla is the Poseidon binding of a full parameter record. Relations
recompute bullas from these field lists on every evaluation; a bulla is never
accepted as a trusted witness.
"""

import logging
from dataclasses import dataclass
from typing import List

from zk.field import random_element, validate_element
from zk.pedersen import EdwardsPoint, PedersenGenerators, random_scalar
from zk.poseidon import bind_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaoParams:
    """Governance parameters of one DAO"""
    proposer_limit: int
    quorum: int
    approval_ratio_quot: int
    approval_ratio_base: int
    gov_token_id: int
    public_key: EdwardsPoint
    bulla_blind: int

    def __post_init__(self):
        for name in ('proposer_limit', 'quorum', 'approval_ratio_quot',
                     'approval_ratio_base', 'gov_token_id', 'bulla_blind'):
            if not validate_element(getattr(self, name)):
                raise ValueError(f"DaoParams.{name} is not a field element")

        if not isinstance(self.public_key, EdwardsPoint) or not self.public_key.is_on_curve():
            raise ValueError("DaoParams.public_key must be a point on the curve")

        if self.approval_ratio_base == 0:
            raise ValueError("Approval ratio base must be non-zero")

        if self.approval_ratio_quot > self.approval_ratio_base:
            raise ValueError("Approval ratio must not exceed 1")

    def bulla_fields(self) -> List[int]:
        return [
            self.proposer_limit,
            self.quorum,
            self.approval_ratio_quot,
            self.approval_ratio_base,
            self.gov_token_id,
            self.public_key.x,
            self.public_key.y,
            self.bulla_blind,
        ]

    def bulla(self) -> int:
        return dao_bulla(self)


@dataclass(frozen=True)
class ProposalParams:
    """Transfer a DAO proposes to make from its treasury"""
    dest: EdwardsPoint
    amount: int
    serial: int
    token_id: int
    blind: int

    def __post_init__(self):
        for name in ('amount', 'serial', 'token_id', 'blind'):
            if not validate_element(getattr(self, name)):
                raise ValueError(f"ProposalParams.{name} is not a field element")

        if not isinstance(self.dest, EdwardsPoint) or not self.dest.is_on_curve():
            raise ValueError("ProposalParams.dest must be a point on the curve")

    def bulla_fields(self, dao_bulla_value: int) -> List[int]:
        return [
            self.dest.x,
            self.dest.y,
            self.amount,
            self.serial,
            self.token_id,
            dao_bulla_value,
            self.blind,
        ]

    def bulla(self, dao_bulla_value: int) -> int:
        return proposal_bulla(self, dao_bulla_value)


@dataclass(frozen=True)
class Coin:
    """Output note created by Exec"""
    owner: EdwardsPoint
    value: int
    token_id: int
    serial: int
    spend_hook: int
    user_data: int
    coin_blind: int

    def fields(self) -> List[int]:
        return [
            self.owner.x,
            self.owner.y,
            self.value,
            self.token_id,
            self.serial,
            self.spend_hook,
            self.user_data,
            self.coin_blind,
        ]

    def commitment(self) -> int:
        return bind_hash(*self.fields())


def dao_bulla(params: DaoParams) -> int:
    return bind_hash(*params.bulla_fields())


def proposal_bulla(params: ProposalParams, dao_bulla_value: int) -> int:
    return bind_hash(*params.bulla_fields(dao_bulla_value))


def token_commitment(gov_token_id: int, token_blind: int) -> int:
    """Shared across proofs in one transaction to bind them to the same token"""
    return bind_hash(gov_token_id, token_blind)


def random_blind() -> int:
    return random_element()


@dataclass(frozen=True)
class Keypair:
    """Secret scalar and its public point; DAO treasuries and recipients hold one"""
    secret: int
    public: EdwardsPoint

    @staticmethod
    def from_secret(secret: int) -> 'Keypair':
        return Keypair(secret, PedersenGenerators.SPEND_AUTH * secret)

    @staticmethod
    def random() -> 'Keypair':
        return Keypair.from_secret(random_scalar())
