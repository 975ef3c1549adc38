"""
Constraint-system primitives for the DAO governance relations:
field, Poseidon, Pedersen on Baby Jubjub, Merkle membership and proofs.
"""

from .backend import (
    Proof,
    ProofBackend,
    RejectionReason,
    TransparentBackend,
    VerificationResult,
)
from .constraints import ConstraintSystem, PublicInputs, Relation
from .errors import (
    ConstraintViolation,
    InvariantViolation,
    MalformedPublicInput,
    MalformedWitness,
    MembershipFailure,
    UnknownRelation,
    ZKError,
)
from .field import PRIME, random_element, validate_element
from .merkle import MERKLE_DEPTH, SparseMerkleTree, compute_root, verify_membership
from .pedersen import (
    SUBGROUP_ORDER,
    VALUE_BITS,
    EdwardsPoint,
    PedersenGenerators,
    random_scalar,
    sum_points,
    value_commit,
)
from .poseidon import bind_hash, poseidon_hash
from .proof_system import ProofSystem, create_backend

__all__ = [
    # Primitives
    'PRIME',
    'SUBGROUP_ORDER',
    'VALUE_BITS',
    'MERKLE_DEPTH',
    'EdwardsPoint',
    'PedersenGenerators',
    'bind_hash',
    'poseidon_hash',
    'value_commit',
    'sum_points',
    'random_element',
    'random_scalar',
    'validate_element',
    'SparseMerkleTree',
    'compute_root',
    'verify_membership',

    # Relations and proofs
    'ConstraintSystem',
    'PublicInputs',
    'Relation',
    'Proof',
    'ProofBackend',
    'TransparentBackend',
    'ProofSystem',
    'create_backend',
    'RejectionReason',
    'VerificationResult',

    # Exceptions
    'ZKError',
    'MalformedWitness',
    'MalformedPublicInput',
    'MembershipFailure',
    'ConstraintViolation',
    'InvariantViolation',
    'UnknownRelation',
]
