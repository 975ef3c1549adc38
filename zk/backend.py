"""
Proof backend contract and the transparent reference backend.

A production deployment plugs a real proving system in behind ``ProofBackend``.
``TransparentBackend`` honours the same contract without zero-knowledge: the
proof carries the witness opening and verification re-evaluates the relation
before comparing public inputs positionally. It is not hiding and must not be
used where witness privacy matters.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .constraints import Relation
from .errors import (
    ConstraintViolation,
    InvariantViolation,
    MalformedPublicInput,
    MalformedWitness,
    UnknownRelation,
)

logger = logging.getLogger(__name__)


class RejectionReason(Enum):
    """Classification attached to every verification outcome"""
    ACCEPTED = "accepted"
    UNKNOWN_RELATION = "unknown_relation"
    RELATION_MISMATCH = "relation_mismatch"
    MALFORMED_PUBLIC_INPUT = "malformed_public_input"
    PROOF_INTEGRITY = "proof_integrity"
    CONSTRAINT_VIOLATION = "constraint_violation"
    INVARIANT_VIOLATION = "invariant_violation"
    PUBLIC_INPUT_MISMATCH = "public_input_mismatch"
    MEMBERSHIP_FAILURE = "membership_failure"
    CROSS_PROOF_MISMATCH = "cross_proof_mismatch"
    TALLY_MISMATCH = "tally_mismatch"
    CALL_DATA_MISMATCH = "call_data_mismatch"


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: RejectionReason
    detail: str = ""

    def __bool__(self) -> bool:
        return self.valid

    @staticmethod
    def accept() -> 'VerificationResult':
        return VerificationResult(True, RejectionReason.ACCEPTED)

    @staticmethod
    def reject(reason: RejectionReason, detail: str = "") -> 'VerificationResult':
        return VerificationResult(False, reason, detail)


@dataclass
class Proof:
    """Container for proof and metadata"""
    relation_id: str
    public_inputs: List[int]
    opening: Any
    digest: str
    generation_time: float
    timestamp: float = field(default_factory=time.time)


def _encode(value: Any) -> Any:
    if is_dataclass(value):
        return _encode(asdict(value))
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    if isinstance(value, int) and not isinstance(value, bool):
        return hex(value)
    return value


def proof_digest(relation_id: str, public_inputs: List[int], opening: Any) -> str:
    """SHA-256 over the canonical JSON form of the proof contents"""
    payload = json.dumps({
        'relation_id': relation_id,
        'public_inputs': _encode(public_inputs),
        'opening': _encode(opening),
    }, sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()


class ProofBackend(ABC):
    """prove(relation, witness) -> Proof; verify(relation_id, proof, public_inputs) -> bool"""

    def __init__(self, relations: Mapping[str, Relation]):
        self.relations: Dict[str, Relation] = dict(relations)

    def get_relation(self, relation_id: str) -> Relation:
        try:
            return self.relations[relation_id]
        except KeyError:
            raise UnknownRelation(f"No relation registered as {relation_id!r}") from None

    @abstractmethod
    def prove(self, relation: Relation, witness: Any) -> Proof:
        """Raises ConstraintViolation when the witness does not satisfy the relation"""

    @abstractmethod
    def check(self, relation_id: str, proof: Proof, public_inputs: Any) -> VerificationResult:
        """Verify and classify; never raises for a bad proof"""

    def verify(self, relation_id: str, proof: Proof, public_inputs: Any) -> bool:
        return self.check(relation_id, proof, public_inputs).valid


class TransparentBackend(ProofBackend):
    """Reference backend: the proof opens the witness, verification re-evaluates it"""

    def prove(self, relation: Relation, witness: Any) -> Proof:
        if relation.relation_id not in self.relations:
            raise UnknownRelation(f"No relation registered as {relation.relation_id!r}")

        start_time = time.time()
        cs = relation.evaluate(witness)
        if not cs.is_satisfied():
            logger.warning(f"Refusing to prove {relation.relation_id}: {', '.join(cs.failures)}")
        cs.raise_for_failures()

        public_inputs = list(cs.public_inputs)
        proof = Proof(
            relation_id=relation.relation_id,
            public_inputs=public_inputs,
            opening=witness,
            digest=proof_digest(relation.relation_id, public_inputs, witness),
            generation_time=time.time() - start_time,
        )
        logger.info(
            f"Generated {relation.relation_id} proof in {proof.generation_time:.3f}s "
            f"(~{cs.constraint_count} constraints)")
        return proof

    def check(self, relation_id: str, proof: Proof, public_inputs: Any) -> VerificationResult:
        relation = self.relations.get(relation_id)
        if relation is None:
            return VerificationResult.reject(
                RejectionReason.UNKNOWN_RELATION, f"No relation registered as {relation_id!r}")

        if not isinstance(proof, Proof) or proof.relation_id != relation_id:
            return VerificationResult.reject(
                RejectionReason.RELATION_MISMATCH,
                f"Proof is not a {relation_id} proof")

        try:
            expected = relation.public_type.coerce(public_inputs).to_list()
        except MalformedPublicInput as e:
            return VerificationResult.reject(RejectionReason.MALFORMED_PUBLIC_INPUT, str(e))

        try:
            digest = proof_digest(proof.relation_id, proof.public_inputs, proof.opening)
        except (TypeError, ValueError) as e:
            return VerificationResult.reject(RejectionReason.PROOF_INTEGRITY, f"Proof is not serializable: {e}")
        if digest != proof.digest:
            return VerificationResult.reject(RejectionReason.PROOF_INTEGRITY, "Proof digest mismatch")

        try:
            cs = relation.evaluate(proof.opening)
            cs.raise_for_failures()
        except InvariantViolation as e:
            return VerificationResult.reject(RejectionReason.INVARIANT_VIOLATION, str(e))
        except ConstraintViolation as e:
            return VerificationResult.reject(RejectionReason.CONSTRAINT_VIOLATION, str(e))
        except MalformedWitness as e:
            return VerificationResult.reject(RejectionReason.CONSTRAINT_VIOLATION, str(e))

        mismatch = first_mismatch(cs.public_inputs, expected)
        if mismatch is not None:
            name = relation.public_type.field_names()[mismatch]
            return VerificationResult.reject(
                RejectionReason.PUBLIC_INPUT_MISMATCH,
                f"{relation_id} public input {mismatch} ({name}) does not match the proof")

        return VerificationResult.accept()


def first_mismatch(actual: List[int], expected: List[int]) -> Optional[int]:
    for index, (a, b) in enumerate(zip(actual, expected)):
        if a != b:
            return index
    return None
