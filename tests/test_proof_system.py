import asyncio
from types import SimpleNamespace

import pytest

from config.config import ProofConfig
from dao import DAO_RELATIONS
from zk import InvariantViolation, ProofSystem, RejectionReason, TransparentBackend, UnknownRelation, create_backend
from utils.utils import PerformanceMonitor


@pytest.fixture
def proof_system():
    system = ProofSystem(
        DAO_RELATIONS,
        config=ProofConfig(max_concurrent_proofs=2, parallel_workers=2),
        monitor=PerformanceMonitor(),
    )
    yield system
    system.shutdown()


def test_create_backend():
    backend = create_backend(ProofConfig(), DAO_RELATIONS)
    assert isinstance(backend, TransparentBackend)
    assert set(backend.relations) == {"dao-propose", "dao-vote", "dao-exec"}


def test_create_backend_unsupported():
    with pytest.raises(ValueError):
        create_backend(SimpleNamespace(backend="groth16"), DAO_RELATIONS)


def test_prove_batch_and_verify_batch(proof_system, make_vote):
    witnesses = [make_vote(option, 1, index=i).witness() for i, option in enumerate((1, 0, 1))]

    async def run():
        proofs = await proof_system.prove_batch("dao-vote", witnesses)
        results = await proof_system.verify_batch(
            [("dao-vote", proof, proof.public_inputs) for proof in proofs])
        return proofs, results

    proofs, results = asyncio.run(run())
    assert len(proofs) == 3
    assert all(result.valid for result in results)

    summary = proof_system.monitor.get_summary()
    assert summary['operations']['prove:dao-vote']['count'] == 3
    assert summary['operations']['verify:dao-vote']['count'] == 3


def test_batch_failure_propagates(proof_system, make_vote):
    witnesses = [make_vote(1, 1).witness(), make_vote(2, 1, index=1).witness()]
    with pytest.raises(InvariantViolation):
        asyncio.run(proof_system.prove_batch("dao-vote", witnesses))

    summary = proof_system.monitor.get_summary()
    assert summary['operations']['prove:dao-vote']['failures'] == 1


def test_verify_rejects_other_inputs(proof_system, make_vote):
    proof = proof_system.prove_sync("dao-vote", make_vote(1, 1).witness())
    other = list(proof.public_inputs)
    other[1] = other[1] ^ 1

    assert asyncio.run(proof_system.verify("dao-vote", proof, proof.public_inputs))
    result = asyncio.run(proof_system.check("dao-vote", proof, other))
    assert result.reason == RejectionReason.PUBLIC_INPUT_MISMATCH


def test_unknown_relation(proof_system):
    with pytest.raises(UnknownRelation):
        proof_system.prove_sync("dao-unknown", None)
