"""
Exec relation: an approved proposal pays out of the DAO treasury.

The treasury input is split into two coins: coin_0 sends the proposal amount to
its destination, coin_1 returns the change to the DAO's own key with the
proposal bulla as its user data.

Public instance, in order:
    [proposal_bulla, coin_0, coin_1,
     win_votes_commit_x, win_votes_commit_y,
     total_votes_commit_x, total_votes_commit_y,
     input_value_commit_x, input_value_commit_y,
     dao_spend_hook, user_spend_hook, user_data]
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from zk.backend import ProofBackend
from zk.constraints import ConstraintSystem, PublicInputs, Relation
from zk.field import PRIME
from zk.pedersen import VALUE_BITS

from .calls import DAO_CONTRACT_ID, DAO_EXEC_FUNC, ContractCall
from .models import Coin, DaoParams, ProposalParams
from .tally import TallyOpening

logger = logging.getLogger(__name__)

RELATION_ID = "dao-exec"

EXEC_INVARIANTS = frozenset({"quorum", "approval_ratio", "change_non_negative"})


@dataclass(frozen=True)
class ExecWitness:
    proposal: ProposalParams
    dao: DaoParams
    win_votes: int
    total_votes: int
    win_votes_blind: int
    total_votes_blind: int
    user_serial: int
    user_coin_blind: int
    dao_serial: int
    dao_coin_blind: int
    input_value: int
    input_value_blind: int
    dao_spend_hook: int
    user_spend_hook: int
    user_data: int


@dataclass(frozen=True)
class ExecPublicInputs(PublicInputs):
    proposal_bulla: int
    coin_0: int
    coin_1: int
    win_votes_commit_x: int
    win_votes_commit_y: int
    total_votes_commit_x: int
    total_votes_commit_y: int
    input_value_commit_x: int
    input_value_commit_y: int
    dao_spend_hook: int
    user_spend_hook: int
    user_data: int


def synthesize_exec(cs: ConstraintSystem, w: ExecWitness):
    dao = w.dao
    proposal = w.proposal

    dao_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "dao_params") for v in dao.bulla_fields()])
    proposal_bulla = cs.poseidon_hash(
        *[cs.witness_base(v, "proposal_params") for v in proposal.bulla_fields(dao_bulla)])
    cs.constrain_instance(proposal_bulla)

    amount = cs.witness_base(proposal.amount, "proposal_amount")
    input_value = cs.witness_base(w.input_value, "input_value")
    dao_spend_hook = cs.witness_base(w.dao_spend_hook, "dao_spend_hook")
    user_spend_hook = cs.witness_base(w.user_spend_hook, "user_spend_hook")
    user_data = cs.witness_base(w.user_data, "user_data")

    coin_0 = cs.poseidon_hash(
        proposal.dest.x,
        proposal.dest.y,
        amount,
        proposal.token_id,
        cs.witness_base(w.user_serial, "user_serial"),
        user_spend_hook,
        user_data,
        cs.witness_base(w.user_coin_blind, "user_coin_blind"),
    )
    cs.constrain_instance(coin_0)

    cs.range_check(amount, VALUE_BITS, "proposal_amount_range")
    change = cs.sub(input_value, amount)
    cs.range_check(change, VALUE_BITS, "change_non_negative")

    coin_1 = cs.poseidon_hash(
        dao.public_key.x,
        dao.public_key.y,
        change,
        proposal.token_id,
        cs.witness_base(w.dao_serial, "dao_serial"),
        dao_spend_hook,
        proposal_bulla,
        cs.witness_base(w.dao_coin_blind, "dao_coin_blind"),
    )
    cs.constrain_instance(coin_1)

    win_votes = cs.witness_base(w.win_votes, "win_votes")
    total_votes = cs.witness_base(w.total_votes, "total_votes")

    cs.greater_equal(total_votes, dao.quorum, VALUE_BITS, "quorum")

    # Both ratio terms fit in 64 bits, so the products fit in 128 and cannot wrap
    quot = cs.witness_base(dao.approval_ratio_quot, "approval_ratio_quot")
    base = cs.witness_base(dao.approval_ratio_base, "approval_ratio_base")
    cs.range_check(quot, VALUE_BITS, "approval_ratio_range")
    cs.range_check(base, VALUE_BITS, "approval_ratio_range")
    cs.greater_equal(
        cs.mul(win_votes, base), cs.mul(total_votes, quot), 2 * VALUE_BITS, "approval_ratio")

    win_blind = cs.witness_scalar(w.win_votes_blind, "win_votes_blind")
    cs.constrain_point_instance(cs.value_commit(win_votes, win_blind, "win_votes"))

    total_blind = cs.witness_scalar(w.total_votes_blind, "total_votes_blind")
    cs.constrain_point_instance(cs.value_commit(total_votes, total_blind, "total_votes"))

    input_blind = cs.witness_scalar(w.input_value_blind, "input_value_blind")
    cs.constrain_point_instance(cs.value_commit(input_value, input_blind, "input_value"))

    cs.constrain_instance(dao_spend_hook)
    cs.constrain_instance(user_spend_hook)
    cs.constrain_instance(user_data)


EXEC_RELATION = Relation(
    relation_id=RELATION_ID,
    witness_type=ExecWitness,
    public_type=ExecPublicInputs,
    synthesize=synthesize_exec,
    invariant_labels=EXEC_INVARIANTS,
)


@dataclass
class ExecBuilder:
    proposal: ProposalParams
    dao: DaoParams
    win_votes: int
    total_votes: int
    win_votes_blind: int
    total_votes_blind: int
    user_serial: int
    user_coin_blind: int
    dao_serial: int
    dao_coin_blind: int
    input_value: int
    input_value_blind: int
    dao_spend_hook: int = 0
    user_spend_hook: int = 0
    user_data: int = 0

    @classmethod
    def from_tally(cls, proposal: ProposalParams, dao: DaoParams, tally: TallyOpening, **kwargs) -> 'ExecBuilder':
        """Builder whose vote totals come from the summed voter openings"""
        return cls(
            proposal=proposal,
            dao=dao,
            win_votes=tally.win_votes,
            total_votes=tally.total_votes,
            win_votes_blind=tally.win_votes_blind,
            total_votes_blind=tally.total_votes_blind,
            **kwargs,
        )

    def witness(self) -> ExecWitness:
        return ExecWitness(
            proposal=self.proposal,
            dao=self.dao,
            win_votes=self.win_votes,
            total_votes=self.total_votes,
            win_votes_blind=self.win_votes_blind,
            total_votes_blind=self.total_votes_blind,
            user_serial=self.user_serial,
            user_coin_blind=self.user_coin_blind,
            dao_serial=self.dao_serial,
            dao_coin_blind=self.dao_coin_blind,
            input_value=self.input_value,
            input_value_blind=self.input_value_blind,
            dao_spend_hook=self.dao_spend_hook,
            user_spend_hook=self.user_spend_hook,
            user_data=self.user_data,
        )

    def coins(self) -> Tuple[Coin, Coin]:
        """The payout and change coins this execution creates"""
        dao_bulla = self.dao.bulla()
        payout = Coin(
            owner=self.proposal.dest,
            value=self.proposal.amount,
            token_id=self.proposal.token_id,
            serial=self.user_serial,
            spend_hook=self.user_spend_hook,
            user_data=self.user_data,
            coin_blind=self.user_coin_blind,
        )
        change = Coin(
            owner=self.dao.public_key,
            value=(self.input_value - self.proposal.amount) % PRIME,
            token_id=self.proposal.token_id,
            serial=self.dao_serial,
            spend_hook=self.dao_spend_hook,
            user_data=self.proposal.bulla(dao_bulla),
            coin_blind=self.dao_coin_blind,
        )
        return payout, change

    def build(self, backend: ProofBackend) -> ContractCall:
        logger.debug("ExecBuilder.build()")

        proof = backend.prove(EXEC_RELATION, self.witness())
        call_data = ExecPublicInputs.from_list(proof.public_inputs)

        return ContractCall(
            contract_id=DAO_CONTRACT_ID,
            func_id=DAO_EXEC_FUNC,
            call_data=call_data,
            proofs=[proof],
        )
