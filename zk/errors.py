"""
Exception taxonomy for relation evaluation, proving and verification
"""

from typing import List, Optional


class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class MalformedWitness(ZKError):
    """Witness value outside the field or structurally invalid"""
    pass


class MalformedPublicInput(ZKError):
    """Public inputs with wrong arity, order or out-of-field values"""
    pass


class UnknownRelation(ZKError):
    """Relation id is not registered with the backend"""
    pass


class MembershipFailure(ZKError):
    """Registry root is not a known snapshot, or a path does not reach it"""
    pass


class ConstraintViolation(ZKError):
    """Witness does not satisfy the relation; no proof is produced"""

    def __init__(self, relation_id: str, failures: List[str], message: Optional[str] = None):
        self.relation_id = relation_id
        self.failures = list(failures)
        if message is None:
            message = f"{relation_id}: unsatisfied constraints: {', '.join(self.failures)}"
        super().__init__(message)


class InvariantViolation(ConstraintViolation):
    """A governance invariant (limit, booleanity, quorum, ratio, change) failed"""
    pass
