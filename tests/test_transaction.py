from dataclasses import replace
from types import SimpleNamespace

import pytest

from dao import ContractCall, Transaction, TransactionVerifier, VoteRecord, VoteTally, token_commitment
from zk import RejectionReason
from zk.backend import proof_digest


@pytest.fixture
def propose_call(propose_builder, backend):
    return propose_builder.build(backend)


@pytest.fixture
def verifier(backend, registry):
    return TransactionVerifier(backend, registry.root_history)


def companion_call(token_commit):
    """Token spend that travels in the same transaction as a DAO call"""
    return ContractCall(
        contract_id="Money",
        func_id="Money::transfer()",
        call_data=SimpleNamespace(token_commit=token_commit),
    )


def test_propose_accepted(verifier, propose_call):
    result = verifier.verify(Transaction([propose_call]))
    assert result.valid
    assert result.reason == RejectionReason.ACCEPTED


def test_unknown_registry_root(backend, propose_call):
    result = TransactionVerifier(backend, [12345]).verify(Transaction([propose_call]))
    assert result.reason == RejectionReason.MEMBERSHIP_FAILURE


def test_old_registry_snapshot_still_accepted(verifier, propose_call, registry):
    registry.append(0x999)
    verifier.add_root(registry.get_root())
    assert verifier.verify(Transaction([propose_call])).valid


def test_matching_companion_token(verifier, propose_call, propose_builder, dao):
    token_commit = token_commitment(dao.gov_token_id, propose_builder.token_blind)
    tx = Transaction([propose_call, companion_call(token_commit)])
    assert verifier.verify(tx).valid


def test_mismatched_companion_token(verifier, propose_call, dao):
    other = token_commitment(dao.gov_token_id + 1, 0x70)
    tx = Transaction([propose_call, companion_call(other)])
    assert verifier.verify(tx).reason == RejectionReason.CROSS_PROOF_MISMATCH


def test_mismatched_vote_tokens(verifier, make_vote, backend):
    first, _ = make_vote(1, 1, index=0).build(backend)
    second, _ = make_vote(1, 1, index=1).build(backend)
    assert verifier.verify(Transaction([first])).valid
    assert verifier.verify(Transaction([first, second])).reason == RejectionReason.CROSS_PROOF_MISMATCH


def test_tampered_call_data(verifier, propose_call):
    bad = replace(propose_call.call_data, proposal_bulla=propose_call.call_data.proposal_bulla ^ 1)
    propose_call.call_data = bad
    assert verifier.verify(Transaction([propose_call])).reason == RejectionReason.PUBLIC_INPUT_MISMATCH


def test_proof_declares_other_public_inputs(verifier, propose_call):
    proof = propose_call.proofs[0]
    declared = list(proof.public_inputs)
    declared[0] ^= 1
    propose_call.proofs = [replace(
        proof,
        public_inputs=declared,
        digest=proof_digest(proof.relation_id, declared, proof.opening),
    )]
    assert verifier.verify(Transaction([propose_call])).reason == RejectionReason.CALL_DATA_MISMATCH


def test_unknown_dao_function(verifier, propose_call):
    propose_call.func_id = "DAO::withdraw()"
    assert verifier.verify(Transaction([propose_call])).reason == RejectionReason.UNKNOWN_RELATION


def test_missing_proof(verifier, propose_call):
    propose_call.proofs = []
    assert verifier.verify(Transaction([propose_call])).reason == RejectionReason.RELATION_MISMATCH


def test_proof_for_wrong_function(verifier, propose_call):
    propose_call.func_id = "DAO::vote()"
    result = verifier.verify(Transaction([propose_call]))
    assert result.reason == RejectionReason.RELATION_MISMATCH


def test_exec_against_tally(verifier, make_vote, make_exec, backend, dao, proposal):
    ballots = [(1, 1), (1, 1), (1, 1)]
    records = []
    for index, (option, weight) in enumerate(ballots):
        call, _ = make_vote(option, weight, index=index).build(backend)
        records.append(VoteRecord.from_call(call))

    bulla = proposal.bulla(dao.bulla())
    full = VoteTally.from_records(bulla, records)
    partial = VoteTally.from_records(bulla, records[:2])

    blinds = dict(win_votes_blind=1000 + 1001 + 1002, total_votes_blind=2000 + 2001 + 2002)
    exec_call = make_exec(3, 3, **blinds).build(backend)

    assert verifier.verify(Transaction([exec_call]), tally=full).valid
    assert verifier.verify(Transaction([exec_call])).reason == RejectionReason.TALLY_MISMATCH
    assert verifier.verify(Transaction([exec_call]), tally=partial).reason == RejectionReason.TALLY_MISMATCH
    assert verifier.verify(
        Transaction([exec_call]), tally=VoteTally(bulla + 1)).reason == RejectionReason.TALLY_MISMATCH


def test_non_dao_calls_skip_proof_checks(verifier):
    tx = Transaction([companion_call(5), companion_call(5)])
    assert verifier.verify(tx).valid
    assert tx.dao_calls() == []


def test_exec_without_votes_rejected(verifier, make_exec, backend):
    result = verifier.verify(Transaction([make_exec(3, 3).build(backend)]))
    assert not result.valid
    assert result.reason == RejectionReason.TALLY_MISMATCH
