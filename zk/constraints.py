"""
Constraint system used to synthesize and evaluate relations.

A relation is a plain function ``synthesize(cs, witness)`` that loads witness
values, runs gadgets and declares public values in wire order. Evaluating it
on a concrete witness records every unsatisfied constraint by label rather
than stopping at the first one, so a prover gets a complete diagnosis.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, List, Type

from .errors import (
    ConstraintViolation,
    InvariantViolation,
    MalformedPublicInput,
    MalformedWitness,
)
from .field import PRIME, to_field, validate_element
from .merkle import compute_root
from .pedersen import (
    SUBGROUP_ORDER,
    VALUE_BITS,
    EdwardsPoint,
    PedersenGenerators,
)
from .poseidon import bind_hash

logger = logging.getLogger(__name__)

# Approximate row costs, reported for diagnostics only
POSEIDON_COST = 3 * (8 + 57)
EC_MUL_COST = 255 * 3
BIT_COST = 1


class ConstraintSystem:
    """Records public values and unsatisfied constraints for one evaluation"""

    def __init__(self, relation_id: str, invariant_labels: frozenset = frozenset()):
        self.relation_id = relation_id
        self.invariant_labels = invariant_labels
        self.public_inputs: List[int] = []
        self.failures: List[str] = []
        self.constraint_count = 0

    # ------------------------------------------------------------------
    # Witness loading
    # ------------------------------------------------------------------

    def witness_base(self, value: Any, name: str) -> int:
        return to_field(value, name)

    def witness_scalar(self, value: Any, name: str) -> int:
        return to_field(value, name) % SUBGROUP_ORDER

    # ------------------------------------------------------------------
    # Basic constraints
    # ------------------------------------------------------------------

    def enforce(self, condition: bool, label: str):
        self.constraint_count += 1
        if not condition:
            self.failures.append(label)

    def constrain_equal(self, a: int, b: int, label: str):
        self.enforce(a % PRIME == b % PRIME, label)

    def constrain_instance(self, value: int):
        self.public_inputs.append(value % PRIME)

    def constrain_point_instance(self, point: EdwardsPoint):
        self.constrain_instance(point.x)
        self.constrain_instance(point.y)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, a: int, b: int) -> int:
        return (a + b) % PRIME

    def sub(self, a: int, b: int) -> int:
        return (a - b) % PRIME

    def mul(self, a: int, b: int) -> int:
        self.constraint_count += 1
        return (a * b) % PRIME

    # ------------------------------------------------------------------
    # Gadgets
    # ------------------------------------------------------------------

    def poseidon_hash(self, *values: int) -> int:
        self.constraint_count += POSEIDON_COST * ((len(values) + 1) // 2)
        return bind_hash(*values)

    def bool_check(self, value: int, label: str):
        """value * (value - 1) == 0"""
        self.enforce(self.mul(value, self.sub(value, 1)) == 0, label)

    def range_check(self, value: int, bits: int, label: str):
        """Bit decomposition: value == sum(b_i * 2^i) with every b_i boolean"""
        self.constraint_count += bits * BIT_COST
        value = value % PRIME
        bit_values = [(value >> i) & 1 for i in range(bits)]
        recomposed = sum(bit << i for i, bit in enumerate(bit_values))
        self.enforce(recomposed == value, label)

    def greater_equal(self, a: int, b: int, bits: int, label: str):
        """a >= b for operands below 2^bits; the difference must not wrap"""
        self.range_check(a, bits, f"{label}_lhs_range")
        self.range_check(b, bits, f"{label}_rhs_range")
        self.range_check(self.sub(a, b), bits, label)

    def ec_mul_short(self, value: int, generator: EdwardsPoint, label: str) -> EdwardsPoint:
        """Fixed-base multiplication by a short scalar; enforces value < 2^VALUE_BITS"""
        self.range_check(value, VALUE_BITS, label)
        self.constraint_count += EC_MUL_COST // 4
        return generator * (value % SUBGROUP_ORDER)

    def ec_mul(self, scalar: int, generator: EdwardsPoint) -> EdwardsPoint:
        self.constraint_count += EC_MUL_COST
        return generator * (scalar % SUBGROUP_ORDER)

    def value_commit(self, value: int, blind: int, label: str) -> EdwardsPoint:
        """value*G_value + blind*G_random with the value range-checked"""
        value_part = self.ec_mul_short(value, PedersenGenerators.VALUE, f"{label}_value_range")
        blind_part = self.ec_mul(blind, PedersenGenerators.RANDOM)
        return value_part + blind_part

    def merkle_root(self, position: int, path: List[int], leaf: int) -> int:
        self.range_check(position, len(path), "merkle_position_range")
        self.constraint_count += POSEIDON_COST * len(path)
        return compute_root(leaf, position, path)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def is_satisfied(self) -> bool:
        return not self.failures

    def raise_for_failures(self):
        if not self.failures:
            return
        if any(label in self.invariant_labels for label in self.failures):
            raise InvariantViolation(self.relation_id, self.failures)
        raise ConstraintViolation(self.relation_id, self.failures)


class PublicInputs:
    """Base for public-input records; dataclass field order is the wire order"""

    @classmethod
    def arity(cls) -> int:
        return len(fields(cls))

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_list(self) -> List[int]:
        return [getattr(self, f.name) for f in fields(self)]

    @classmethod
    def from_list(cls, values: List[Any]):
        values = list(values)
        if len(values) != cls.arity():
            raise MalformedPublicInput(
                f"{cls.__name__} expects {cls.arity()} values, got {len(values)}")

        for f, value in zip(fields(cls), values):
            if not validate_element(value):
                raise MalformedPublicInput(f"{cls.__name__}.{f.name} is not a field element: {value!r}")

        return cls(*values)

    @classmethod
    def coerce(cls, public_inputs: Any):
        if isinstance(public_inputs, cls):
            return cls.from_list(public_inputs.to_list())
        if isinstance(public_inputs, PublicInputs):
            raise MalformedPublicInput(
                f"Expected {cls.__name__}, got {type(public_inputs).__name__}")
        if not isinstance(public_inputs, (list, tuple)):
            raise MalformedPublicInput(f"Unsupported public input container: {type(public_inputs).__name__}")
        return cls.from_list(public_inputs)


@dataclass(frozen=True)
class Relation:
    """Statically typed relation: witness type, public type and synthesis function"""
    relation_id: str
    witness_type: Type
    public_type: Type[PublicInputs]
    synthesize: Callable[[ConstraintSystem, Any], None]
    invariant_labels: frozenset = field(default_factory=frozenset)

    def evaluate(self, witness: Any) -> ConstraintSystem:
        """Run synthesis on a concrete witness"""
        if not isinstance(witness, self.witness_type):
            raise MalformedWitness(
                f"{self.relation_id} expects {self.witness_type.__name__}, got {type(witness).__name__}")

        cs = ConstraintSystem(self.relation_id, self.invariant_labels)
        try:
            self.synthesize(cs, witness)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedWitness(f"{self.relation_id} witness is malformed: {e}") from e

        if len(cs.public_inputs) != self.public_type.arity():
            raise RuntimeError(
                f"{self.relation_id} declared {len(cs.public_inputs)} public values, "
                f"expected {self.public_type.arity()}")

        logger.debug(
            f"Evaluated {self.relation_id}: ~{cs.constraint_count} constraints, "
            f"{len(cs.failures)} unsatisfied")
        return cs

    def public_inputs(self, witness: Any) -> PublicInputs:
        """Public instance for a satisfying witness"""
        cs = self.evaluate(witness)
        cs.raise_for_failures()
        return self.public_type.from_list(cs.public_inputs)
