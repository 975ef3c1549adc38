from dataclasses import replace

import pytest

from dao import VOTE_RELATION, VoteOpening, VotePublicInputs, token_commitment
from zk import ConstraintViolation, InvariantViolation, PedersenGenerators, Proof, RejectionReason, value_commit
from zk.backend import proof_digest


def test_yes_vote(make_vote, backend, dao, proposal):
    builder = make_vote(1, 7)
    call, opening = builder.build(backend)
    data = call.call_data

    assert call.func_id == "DAO::vote()"
    assert isinstance(data, VotePublicInputs)
    assert data.token_commit == token_commitment(dao.gov_token_id, builder.token_blind)
    assert data.proposal_bulla == proposal.bulla(dao.bulla())
    assert (data.vote_commit_x, data.vote_commit_y) == value_commit(7, builder.vote_blind).coordinates()
    assert (data.value_commit_x, data.value_commit_y) == value_commit(7, builder.value_blind).coordinates()
    assert opening == VoteOpening(vote_option=1, value=7, vote_blind=1000, value_blind=2000)
    assert backend.verify("dao-vote", call.proofs[0], data)


def test_no_vote_commits_zero_weight(make_vote, backend):
    builder = make_vote(0, 7)
    call, opening = builder.build(backend)
    data = call.call_data

    assert (data.vote_commit_x, data.vote_commit_y) == (PedersenGenerators.RANDOM * builder.vote_blind).coordinates()
    assert (data.value_commit_x, data.value_commit_y) == value_commit(7, builder.value_blind).coordinates()
    assert opening.weighted_value == 0


def test_option_two_rejected(make_vote, backend):
    with pytest.raises(InvariantViolation) as exc_info:
        make_vote(2, 7).build(backend)
    assert exc_info.value.failures == ["vote_option_boolean"]


def test_forged_option_proof_rejected(make_vote, backend):
    witness = make_vote(2, 7).witness()
    cs = VOTE_RELATION.evaluate(witness)
    forged = Proof(
        relation_id="dao-vote",
        public_inputs=cs.public_inputs,
        opening=witness,
        digest=proof_digest("dao-vote", cs.public_inputs, witness),
        generation_time=0.0,
    )
    result = backend.check("dao-vote", forged, cs.public_inputs)
    assert result.reason == RejectionReason.INVARIANT_VIOLATION


def test_vote_bound_to_proposal(make_vote, backend, dao, proposal):
    call, _ = make_vote(1, 7).build(backend)
    other = replace(proposal, serial=proposal.serial + 1).bulla(dao.bulla())
    tampered = replace(call.call_data, proposal_bulla=other)

    result = backend.check("dao-vote", call.proofs[0], tampered)
    assert result.reason == RejectionReason.PUBLIC_INPUT_MISMATCH


def test_weight_above_value_range(make_vote, backend):
    with pytest.raises(ConstraintViolation) as exc_info:
        make_vote(1, 1 << 64).build(backend)
    assert not isinstance(exc_info.value, InvariantViolation)
    assert "value_value_range" in exc_info.value.failures


def test_token_commit_differs_per_blind(make_vote, backend):
    first, _ = make_vote(1, 1, index=0).build(backend)
    second, _ = make_vote(1, 1, index=1).build(backend)
    assert first.call_data.token_commit != second.call_data.token_commit


def proof_opening(witness, public_inputs):
    return Proof(
        relation_id="dao-vote",
        public_inputs=public_inputs,
        opening=witness,
        digest=proof_digest("dao-vote", public_inputs, witness),
        generation_time=0.0,
    )


def test_opening_without_dao_rejected(make_vote, backend):
    call, _ = make_vote(1, 7).build(backend)
    public = call.proofs[0].public_inputs
    forged = proof_opening(replace(make_vote(1, 7).witness(), dao=None), public)

    result = backend.check("dao-vote", forged, public)
    assert not result.valid
    assert result.reason == RejectionReason.CONSTRAINT_VIOLATION


def test_unserializable_opening_rejected(make_vote, backend):
    call, _ = make_vote(1, 7).build(backend)
    proof = replace(call.proofs[0], opening=replace(make_vote(1, 7).witness(), value_blind=object()))

    result = backend.check("dao-vote", proof, call.call_data)
    assert result.reason == RejectionReason.PROOF_INTEGRITY
