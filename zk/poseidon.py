"""
Poseidon permutation over the BN254 scalar field.

Width 3 (rate 2, capacity 1), 8 full rounds and 57 partial rounds with the
x^5 S-box. Round constants are expanded from a fixed SHA-256 seed and the MDS
matrix is the Cauchy matrix 1 / (x_i + y_j) with x_i = i, y_j = t + j.
"""

import hashlib
import logging
from typing import List

from .field import PRIME, field_inv, to_field

logger = logging.getLogger(__name__)


def generate_round_constants(seed: bytes, count: int) -> List[int]:
    """Expand seed into count field elements"""
    constants = []
    counter = 0
    bound = PRIME * (2 ** 256 // PRIME)
    while len(constants) < count:
        digest = hashlib.sha256(seed + counter.to_bytes(4, 'big')).digest()
        counter += 1
        candidate = int.from_bytes(digest, 'big')
        # Rejection sampling keeps the constants uniform
        if candidate < bound:
            constants.append(candidate % PRIME)
    return constants


def generate_mds_matrix(width: int) -> List[List[int]]:
    return [[field_inv(i + width + j) for j in range(width)] for i in range(width)]


class Poseidon:
    """Poseidon hash with fixed-length sponge and 2-to-1 compression"""

    FULL_ROUNDS = 8
    PARTIAL_ROUNDS = 57
    WIDTH = 3
    RATE = 2

    SEED = b"dao-governance-poseidon-bn254-t3"

    ROUND_CONSTANTS = generate_round_constants(SEED, (FULL_ROUNDS + PARTIAL_ROUNDS) * WIDTH)
    MDS_MATRIX = generate_mds_matrix(WIDTH)

    @staticmethod
    def ark(state: List[int], constant_idx: int) -> List[int]:
        """Add round constants"""
        constants = Poseidon.ROUND_CONSTANTS
        return [(state[i] + constants[constant_idx + i]) % PRIME for i in range(Poseidon.WIDTH)]

    @staticmethod
    def sbox(state: List[int], full_round: bool) -> List[int]:
        """Apply S-box (x^5 mod p)"""
        if full_round:
            return [pow(x, 5, PRIME) for x in state]
        return [pow(state[0], 5, PRIME)] + state[1:]

    @staticmethod
    def mix(state: List[int]) -> List[int]:
        """Apply MDS matrix multiplication"""
        return [
            sum(row[j] * state[j] for j in range(Poseidon.WIDTH)) % PRIME
            for row in Poseidon.MDS_MATRIX
        ]

    @staticmethod
    def permute(state: List[int]) -> List[int]:
        if len(state) != Poseidon.WIDTH:
            raise ValueError(f"Poseidon state must have {Poseidon.WIDTH} elements")

        constant_idx = 0
        half_full = Poseidon.FULL_ROUNDS // 2

        for _ in range(half_full):
            state = Poseidon.mix(Poseidon.sbox(Poseidon.ark(state, constant_idx), True))
            constant_idx += Poseidon.WIDTH

        for _ in range(Poseidon.PARTIAL_ROUNDS):
            state = Poseidon.mix(Poseidon.sbox(Poseidon.ark(state, constant_idx), False))
            constant_idx += Poseidon.WIDTH

        for _ in range(half_full):
            state = Poseidon.mix(Poseidon.sbox(Poseidon.ark(state, constant_idx), True))
            constant_idx += Poseidon.WIDTH

        return state

    @staticmethod
    def hash_two(left: int, right: int) -> int:
        """2-to-1 compression used for Merkle nodes"""
        return Poseidon.permute([0, left % PRIME, right % PRIME])[1]

    @staticmethod
    def sponge(inputs: List[int]) -> int:
        """Fixed-length sponge; the capacity element encodes the input length"""
        if not inputs:
            raise ValueError("Poseidon sponge needs at least one input")

        state = [len(inputs) << 64, 0, 0]
        for i in range(0, len(inputs), Poseidon.RATE):
            chunk = inputs[i:i + Poseidon.RATE]
            for j, value in enumerate(chunk):
                state[1 + j] = (state[1 + j] + value) % PRIME
            state = Poseidon.permute(state)
        return state[1]


def poseidon_hash(left: int, right: int) -> int:
    return Poseidon.hash_two(left, right)


def bind_hash(*fields: int) -> int:
    """Deterministic, order-sensitive binding hash over field elements"""
    return Poseidon.sponge([to_field(value, f"bind_hash input {index}") for index, value in enumerate(fields)])
