"""
Prime field helpers for the BN254 scalar field.

Every bulla, hash input and point coordinate is an element of this field and
is carried around as a plain ``int`` in ``[0, PRIME)``. The galois field class
is used where plain modular arithmetic is not enough (square roots).
"""

import logging
import secrets
from typing import Any, Optional

import galois
import numpy as np

from .errors import MalformedWitness

logger = logging.getLogger(__name__)

# BN254 scalar field prime
PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# 5 generates the multiplicative group; passing it skips factoring p - 1
GF = galois.GF(PRIME, primitive_element=5, verify=False)


def validate_element(element: Any) -> bool:
    """True if element is an int inside the field"""
    return isinstance(element, int) and not isinstance(element, bool) and 0 <= element < PRIME


def to_field(value: Any, name: str = "value") -> int:
    """Return value as a field element or raise MalformedWitness"""
    if not validate_element(value):
        raise MalformedWitness(f"{name} is not a field element: {value!r}")
    return value


def field_add(a: int, b: int) -> int:
    return (a + b) % PRIME


def field_sub(a: int, b: int) -> int:
    return (a - b) % PRIME


def field_mul(a: int, b: int) -> int:
    return (a * b) % PRIME


def field_inv(a: int) -> int:
    """Multiplicative inverse via Fermat"""
    if a % PRIME == 0:
        raise ZeroDivisionError("zero has no inverse in the field")
    return pow(a, PRIME - 2, PRIME)


def field_sqrt(value: int) -> Optional[int]:
    """Canonical (smaller) square root of value, or None for non-residues"""
    element = GF(value % PRIME)
    if not element.is_square():
        return None
    # galois square roots only index 1-d arrays
    root = int(np.sqrt(GF([value % PRIME]))[0])
    return min(root, PRIME - root)


def random_element() -> int:
    """Uniform field element from OS randomness"""
    return secrets.randbelow(PRIME)
