"""
Vote relation: a token holder casts a weighted yes/no vote on a proposal.

Public instance, in order:
    [token_commit, proposal_bulla, vote_commit_x, vote_commit_y,
     value_commit_x, value_commit_y]

vote_commit hides ``vote_option * value`` and value_commit hides ``value``, so
summing both across voters yields the yes weight and the total weight of a
proposal without revealing any single ballot.

The relation carries no voter identity or nullifier. Nothing here stops the
same tokens from voting twice; that has to be prevented by whoever spends the
governance tokens alongside the vote.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from zk.backend import ProofBackend
from zk.constraints import ConstraintSystem, PublicInputs, Relation

from .calls import DAO_CONTRACT_ID, DAO_VOTE_FUNC, ContractCall
from .models import DaoParams, ProposalParams
from .tally import VoteOpening

logger = logging.getLogger(__name__)

RELATION_ID = "dao-vote"

VOTE_INVARIANTS = frozenset({"vote_option_boolean"})


@dataclass(frozen=True)
class VoteWitness:
    dao: DaoParams
    proposal: ProposalParams
    vote_option: int
    vote_blind: int
    value: int
    value_blind: int
    token_blind: int


@dataclass(frozen=True)
class VotePublicInputs(PublicInputs):
    token_commit: int
    proposal_bulla: int
    vote_commit_x: int
    vote_commit_y: int
    value_commit_x: int
    value_commit_y: int


def synthesize_vote(cs: ConstraintSystem, w: VoteWitness):
    dao_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "dao_params") for v in w.dao.bulla_fields()])
    proposal_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "proposal_params") for v in w.proposal.bulla_fields(dao_bulla)])

    gov_token_id = cs.witness_base(w.dao.gov_token_id, "gov_token_id")
    token_blind = cs.witness_base(w.token_blind, "token_blind")
    cs.constrain_instance(cs.poseidon_hash(gov_token_id, token_blind))
    cs.constrain_instance(proposal_bulla)

    vote_option = cs.witness_base(w.vote_option, "vote_option")
    value = cs.witness_base(w.value, "value")
    cs.bool_check(vote_option, "vote_option_boolean")

    weighted = cs.mul(vote_option, value)
    vote_blind = cs.witness_scalar(w.vote_blind, "vote_blind")
    cs.constrain_point_instance(cs.value_commit(weighted, vote_blind, "vote"))

    value_blind = cs.witness_scalar(w.value_blind, "value_blind")
    cs.constrain_point_instance(cs.value_commit(value, value_blind, "value"))


VOTE_RELATION = Relation(
    relation_id=RELATION_ID,
    witness_type=VoteWitness,
    public_type=VotePublicInputs,
    synthesize=synthesize_vote,
    invariant_labels=VOTE_INVARIANTS,
)


@dataclass
class VoteBuilder:
    dao: DaoParams
    proposal: ProposalParams
    vote_option: int
    value: int
    vote_blind: int
    value_blind: int
    token_blind: int

    def witness(self) -> VoteWitness:
        return VoteWitness(
            dao=self.dao,
            proposal=self.proposal,
            vote_option=self.vote_option,
            vote_blind=self.vote_blind,
            value=self.value,
            value_blind=self.value_blind,
            token_blind=self.token_blind,
        )

    def opening(self) -> VoteOpening:
        return VoteOpening(
            vote_option=self.vote_option,
            value=self.value,
            vote_blind=self.vote_blind,
            value_blind=self.value_blind,
        )

    def build(self, backend: ProofBackend) -> Tuple[ContractCall, VoteOpening]:
        logger.debug("VoteBuilder.build()")

        proof = backend.prove(VOTE_RELATION, self.witness())
        call_data = VotePublicInputs.from_list(proof.public_inputs)

        call = ContractCall(
            contract_id=DAO_CONTRACT_ID,
            func_id=DAO_VOTE_FUNC,
            call_data=call_data,
            proofs=[proof],
        )
        return call, self.opening()
