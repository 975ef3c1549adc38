"""
DAO governance relations: Propose, Vote and Exec, their wallet-side builders,
the homomorphic tally and transaction verification.
"""

from .calls import (
    DAO_CONTRACT_ID,
    DAO_EXEC_FUNC,
    DAO_PROPOSE_FUNC,
    DAO_VOTE_FUNC,
    ContractCall,
)
from .exec import EXEC_RELATION, ExecBuilder, ExecPublicInputs, ExecWitness
from .models import (
    Coin,
    DaoParams,
    Keypair,
    ProposalParams,
    dao_bulla,
    proposal_bulla,
    random_blind,
    token_commitment,
)
from .propose import PROPOSE_RELATION, ProposeBuilder, ProposePublicInputs, ProposeWitness
from .relations import DAO_RELATIONS, FUNC_TO_RELATION
from .tally import TallyOpening, VoteOpening, VoteRecord, VoteTally, sum_openings
from .transaction import Transaction, TransactionVerifier
from .vote import VOTE_RELATION, VoteBuilder, VotePublicInputs, VoteWitness

__all__ = [
    # Records
    'DaoParams',
    'ProposalParams',
    'Coin',
    'Keypair',
    'dao_bulla',
    'proposal_bulla',
    'token_commitment',
    'random_blind',

    # Relations
    'PROPOSE_RELATION',
    'VOTE_RELATION',
    'EXEC_RELATION',
    'DAO_RELATIONS',
    'FUNC_TO_RELATION',
    'ProposeWitness',
    'ProposePublicInputs',
    'VoteWitness',
    'VotePublicInputs',
    'ExecWitness',
    'ExecPublicInputs',

    # Builders and calls
    'ProposeBuilder',
    'VoteBuilder',
    'ExecBuilder',
    'ContractCall',
    'DAO_CONTRACT_ID',
    'DAO_PROPOSE_FUNC',
    'DAO_VOTE_FUNC',
    'DAO_EXEC_FUNC',

    # Tally and verification
    'VoteOpening',
    'TallyOpening',
    'VoteRecord',
    'VoteTally',
    'sum_openings',
    'Transaction',
    'TransactionVerifier',
]
