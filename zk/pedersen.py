"""
Pedersen value commitments on Baby Jubjub.

Baby Jubjub is the twisted Edwards curve a*x^2 + y^2 = 1 + d*x^2*y^2 defined
over the BN254 scalar field, so point coordinates are themselves field
elements and can be exposed as public inputs. Commitments use the prime-order
subgroup; both generators come from try-and-increment hashing to the curve
followed by cofactor clearing.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from .errors import MalformedWitness
from .field import PRIME, field_inv, field_sqrt, to_field

logger = logging.getLogger(__name__)

CURVE_A = 168700
CURVE_D = 168696
COFACTOR = 8

# Order of the prime-order subgroup; scalars live modulo this value
SUBGROUP_ORDER = 2736030358979909402780800718157159386076813972158567259200215660948447373041

# Values fed to the short multiplication must fit in this many bits
VALUE_BITS = 64


@dataclass(frozen=True)
class EdwardsPoint:
    """Affine point on Baby Jubjub"""
    x: int
    y: int

    @staticmethod
    def identity() -> 'EdwardsPoint':
        return EdwardsPoint(0, 1)

    def is_identity(self) -> bool:
        return self.x == 0 and self.y == 1

    def is_on_curve(self) -> bool:
        if not (0 <= self.x < PRIME and 0 <= self.y < PRIME):
            return False
        x2 = self.x * self.x % PRIME
        y2 = self.y * self.y % PRIME
        return (CURVE_A * x2 + y2 - 1 - CURVE_D * x2 * y2) % PRIME == 0

    def coordinates(self) -> Tuple[int, int]:
        return self.x, self.y

    def __add__(self, other: 'EdwardsPoint') -> 'EdwardsPoint':
        if not isinstance(other, EdwardsPoint):
            return NotImplemented
        x1, y1, x2, y2 = self.x, self.y, other.x, other.y
        k = CURVE_D * x1 * x2 * y1 * y2 % PRIME
        x3 = (x1 * y2 + y1 * x2) * field_inv((1 + k) % PRIME) % PRIME
        y3 = (y1 * y2 - CURVE_A * x1 * x2) * field_inv((1 - k) % PRIME) % PRIME
        return EdwardsPoint(x3, y3)

    def __neg__(self) -> 'EdwardsPoint':
        return EdwardsPoint((-self.x) % PRIME, self.y)

    def __sub__(self, other: 'EdwardsPoint') -> 'EdwardsPoint':
        return self + (-other)

    def __mul__(self, scalar: int) -> 'EdwardsPoint':
        if not isinstance(scalar, int) or isinstance(scalar, bool):
            return NotImplemented
        if scalar < 0:
            return (-self) * (-scalar)
        result = EdwardsPoint.identity()
        addend = self
        while scalar:
            if scalar & 1:
                result = result + addend
            addend = addend + addend
            scalar >>= 1
        return result

    __rmul__ = __mul__


def hash_to_curve(domain: bytes) -> EdwardsPoint:
    """Map a domain string to a subgroup point with unknown discrete log"""
    counter = 0
    while True:
        digest = hashlib.sha256(domain + counter.to_bytes(4, 'big')).digest()
        counter += 1
        y = int.from_bytes(digest, 'big') % PRIME
        y2 = y * y % PRIME
        denominator = (CURVE_A - CURVE_D * y2) % PRIME
        if denominator == 0:
            continue
        x = field_sqrt((1 - y2) * field_inv(denominator) % PRIME)
        if x is None:
            continue
        point = EdwardsPoint(x, y) * COFACTOR
        if not point.is_identity():
            return point


class PedersenGenerators:
    """Fixed generators for value commitments"""

    VALUE = hash_to_curve(b"dao-governance:value_commit:G_value")
    RANDOM = hash_to_curve(b"dao-governance:value_commit:G_random")
    SPEND_AUTH = hash_to_curve(b"dao-governance:spend_auth")


def to_scalar(value: Any, name: str = "scalar") -> int:
    """Reduce a non-negative integer into the subgroup scalar field"""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise MalformedWitness(f"{name} must be a non-negative integer: {value!r}")
    return value % SUBGROUP_ORDER


def random_scalar() -> int:
    return secrets.randbelow(SUBGROUP_ORDER)


def value_commit(value: int, blind: int) -> EdwardsPoint:
    """commit(v, r) = v*G_value + r*G_random

    The value must be a field element. It is reduced mod the subgroup order,
    so commitments add like integers only while the summed values stay below
    SUBGROUP_ORDER; the relations bound every committed value to 64 bits.
    """
    return (PedersenGenerators.VALUE * to_scalar(to_field(value, "value"), "value")
            + PedersenGenerators.RANDOM * to_scalar(blind, "blind"))


def sum_points(points: Iterable[EdwardsPoint]) -> EdwardsPoint:
    total = EdwardsPoint.identity()
    for point in points:
        total = total + point
    return total
