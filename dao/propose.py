"""
Propose relation: a registered DAO member with enough governance tokens
creates a proposal.

Public instance, in order:
    [token_commit, dao_root, proposal_bulla, funds_commit_x, funds_commit_y]
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from zk.backend import ProofBackend
from zk.constraints import ConstraintSystem, PublicInputs, Relation
from zk.errors import MalformedWitness, MembershipFailure
from zk.merkle import MERKLE_DEPTH, verify_membership
from zk.pedersen import VALUE_BITS, PedersenGenerators

from .calls import DAO_CONTRACT_ID, DAO_PROPOSE_FUNC, ContractCall
from .models import DaoParams, ProposalParams

logger = logging.getLogger(__name__)

RELATION_ID = "dao-propose"

PROPOSE_INVARIANTS = frozenset({"proposer_limit"})


@dataclass(frozen=True)
class ProposeWitness:
    dao: DaoParams
    dao_leaf_position: int
    dao_path: List[int]
    proposal: ProposalParams
    total_funds: int
    funds_blind: int
    token_blind: int


@dataclass(frozen=True)
class ProposePublicInputs(PublicInputs):
    token_commit: int
    dao_root: int
    proposal_bulla: int
    funds_commit_x: int
    funds_commit_y: int


def synthesize_propose(cs: ConstraintSystem, w: ProposeWitness):
    dao = w.dao
    proposal = w.proposal

    gov_token_id = cs.witness_base(dao.gov_token_id, "gov_token_id")
    token_blind = cs.witness_base(w.token_blind, "token_blind")
    token_commit = cs.poseidon_hash(gov_token_id, token_blind)
    cs.constrain_instance(token_commit)

    dao_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "dao_params") for v in dao.bulla_fields()])

    if len(w.dao_path) != MERKLE_DEPTH:
        raise MalformedWitness(f"DAO path must have {MERKLE_DEPTH} siblings, got {len(w.dao_path)}")
    path = [cs.witness_base(sibling, "dao_path") for sibling in w.dao_path]
    position = cs.witness_base(w.dao_leaf_position, "dao_leaf_position")
    dao_root = cs.merkle_root(position, path, dao_bulla)
    cs.constrain_instance(dao_root)

    proposal_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "proposal_params") for v in proposal.bulla_fields(dao_bulla)])
    cs.constrain_instance(proposal_bulla)

    total_funds = cs.witness_base(w.total_funds, "total_funds")
    funds_blind = cs.witness_scalar(w.funds_blind, "funds_blind")
    funds_commit = cs.value_commit(total_funds, funds_blind, "total_funds")
    cs.constrain_point_instance(funds_commit)

    # The short multiplication bounds the amount to VALUE_BITS, which serves as
    # the non-negativity proof for proposal_amount
    cs.ec_mul_short(proposal.amount, PedersenGenerators.VALUE, "proposal_amount_range")

    cs.greater_equal(total_funds, dao.proposer_limit, VALUE_BITS, "proposer_limit")


PROPOSE_RELATION = Relation(
    relation_id=RELATION_ID,
    witness_type=ProposeWitness,
    public_type=ProposePublicInputs,
    synthesize=synthesize_propose,
    invariant_labels=PROPOSE_INVARIANTS,
)


@dataclass
class ProposeBuilder:
    dao: DaoParams
    proposal: ProposalParams
    dao_leaf_position: int
    dao_path: List[int]
    total_funds: int
    funds_blind: int
    token_blind: int

    def witness(self) -> ProposeWitness:
        return ProposeWitness(
            dao=self.dao,
            dao_leaf_position=self.dao_leaf_position,
            dao_path=list(self.dao_path),
            proposal=self.proposal,
            total_funds=self.total_funds,
            funds_blind=self.funds_blind,
            token_blind=self.token_blind,
        )

    def build(self, backend: ProofBackend, registry_root: Optional[int] = None) -> ContractCall:
        logger.debug("ProposeBuilder.build()")

        if registry_root is not None:
            dao_bulla = self.dao.bulla()
            if not verify_membership(dao_bulla, self.dao_leaf_position, self.dao_path, registry_root):
                raise MembershipFailure(
                    f"DAO bulla {hex(dao_bulla)} is not at position "
                    f"{self.dao_leaf_position} under root {hex(registry_root)}")

        proof = backend.prove(PROPOSE_RELATION, self.witness())
        call_data = ProposePublicInputs.from_list(proof.public_inputs)

        return ContractCall(
            contract_id=DAO_CONTRACT_ID,
            func_id=DAO_PROPOSE_FUNC,
            call_data=call_data,
            proofs=[proof],
        )
