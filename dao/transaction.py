"""
Transaction-level verification of DAO calls.

Each proof only speaks for its own relation. The checks that tie proofs
together (the governance token shared by every call, the registry snapshot a
proposal was made against, the tally an execution claims) live here.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from zk.backend import ProofBackend, RejectionReason, VerificationResult
from zk.pedersen import EdwardsPoint

from .calls import DAO_EXEC_FUNC, DAO_PROPOSE_FUNC, ContractCall
from .exec import ExecPublicInputs
from .relations import FUNC_TO_RELATION
from .tally import VoteTally

logger = logging.getLogger(__name__)


@dataclass
class Transaction:
    calls: List[ContractCall] = field(default_factory=list)

    def dao_calls(self) -> List[ContractCall]:
        return [call for call in self.calls if call.is_dao_call()]


class TransactionVerifier:
    """Verifies DAO calls against the backend and the ledger's registry snapshots"""

    def __init__(self, backend: ProofBackend, known_roots: Iterable[int] = ()):
        self.backend = backend
        self.known_roots: Set[int] = set(known_roots)

    def add_root(self, root: int):
        self.known_roots.add(root)

    def verify(self, tx: Transaction, tally: Optional[VoteTally] = None) -> VerificationResult:
        for index, call in enumerate(tx.dao_calls()):
            result = self._verify_call(call, tally)
            if not result.valid:
                logger.warning(f"Rejected {call.func_id} (DAO call {index}): {result.reason.value} {result.detail}")
                return result

        token_commits = {call.token_commit for call in tx.calls if call.token_commit is not None}
        if len(token_commits) > 1:
            logger.warning(f"Rejected transaction: {len(token_commits)} distinct token commitments")
            return VerificationResult.reject(
                RejectionReason.CROSS_PROOF_MISMATCH,
                "Calls commit to different governance tokens")

        logger.info(f"Verified transaction with {len(tx.calls)} calls")
        return VerificationResult.accept()

    def _verify_call(self, call: ContractCall, tally: Optional[VoteTally]) -> VerificationResult:
        relation = FUNC_TO_RELATION.get(call.func_id)
        if relation is None:
            return VerificationResult.reject(
                RejectionReason.UNKNOWN_RELATION, f"No DAO function {call.func_id!r}")

        if len(call.proofs) != 1:
            return VerificationResult.reject(
                RejectionReason.RELATION_MISMATCH,
                f"{call.func_id} carries {len(call.proofs)} proofs, expected 1")
        proof = call.proofs[0]

        result = self.backend.check(relation.relation_id, proof, call.call_data)
        if not result.valid:
            return result

        data = relation.public_type.coerce(call.call_data)
        if data.to_list() != list(proof.public_inputs):
            return VerificationResult.reject(
                RejectionReason.CALL_DATA_MISMATCH,
                f"{call.func_id} call data differs from the proof's public inputs")

        if call.func_id == DAO_PROPOSE_FUNC and data.dao_root not in self.known_roots:
            return VerificationResult.reject(
                RejectionReason.MEMBERSHIP_FAILURE,
                f"DAO root {hex(data.dao_root)} is not a known registry root")

        if call.func_id == DAO_EXEC_FUNC:
            if tally is None:
                return VerificationResult.reject(
                    RejectionReason.TALLY_MISMATCH, "Exec needs the tally of the proposal's votes")
            return self._check_tally(data, tally)

        return VerificationResult.accept()

    def _check_tally(self, data: ExecPublicInputs, tally: VoteTally) -> VerificationResult:
        if data.proposal_bulla != tally.proposal_bulla:
            return VerificationResult.reject(
                RejectionReason.TALLY_MISMATCH, "Tally belongs to a different proposal")

        win_commit = EdwardsPoint(data.win_votes_commit_x, data.win_votes_commit_y)
        total_commit = EdwardsPoint(data.total_votes_commit_x, data.total_votes_commit_y)
        if not tally.matches(win_commit, total_commit):
            return VerificationResult.reject(
                RejectionReason.TALLY_MISMATCH,
                f"Vote commitments do not match the tally of {tally.vote_count} votes")

        return VerificationResult.accept()
