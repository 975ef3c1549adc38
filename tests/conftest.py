import pytest

from dao import (
    DAO_RELATIONS,
    DaoParams,
    ExecBuilder,
    Keypair,
    ProposalParams,
    ProposeBuilder,
    VoteBuilder,
)
from zk import SparseMerkleTree, TransparentBackend

GOV_TOKEN_ID = 0x676f76
TREASURY_TOKEN_ID = 0x747273


@pytest.fixture
def backend():
    return TransparentBackend(DAO_RELATIONS)


@pytest.fixture
def dao_keypair():
    return Keypair.from_secret(0xda0)


@pytest.fixture
def dao(dao_keypair):
    # quorum 3, approval ratio 1/2
    return DaoParams(
        proposer_limit=10,
        quorum=3,
        approval_ratio_quot=1,
        approval_ratio_base=2,
        gov_token_id=GOV_TOKEN_ID,
        public_key=dao_keypair.public,
        bulla_blind=0xb1,
    )


@pytest.fixture
def proposal():
    return ProposalParams(
        dest=Keypair.from_secret(0xdead).public,
        amount=100,
        serial=0x5e,
        token_id=TREASURY_TOKEN_ID,
        blind=0xb2,
    )


@pytest.fixture
def registry(dao):
    """Registry holding one unrelated DAO before ours, so ours sits at position 1"""
    tree = SparseMerkleTree()
    tree.append(0x1234)
    tree.append(dao.bulla())
    return tree


@pytest.fixture
def propose_builder(dao, proposal, registry):
    return ProposeBuilder(
        dao=dao,
        proposal=proposal,
        dao_leaf_position=1,
        dao_path=registry.get_path(1),
        total_funds=25,
        funds_blind=0xf0,
        token_blind=0x70,
    )


@pytest.fixture
def make_vote(dao, proposal):
    def _make_vote(vote_option, value, index=0, **overrides):
        params = dict(
            dao=dao,
            proposal=proposal,
            vote_option=vote_option,
            value=value,
            vote_blind=1000 + index,
            value_blind=2000 + index,
            token_blind=3000 + index,
        )
        params.update(overrides)
        return VoteBuilder(**params)
    return _make_vote


@pytest.fixture
def make_exec(dao, proposal):
    def _make_exec(win_votes, total_votes, **overrides):
        params = dict(
            proposal=proposal,
            dao=dao,
            win_votes=win_votes,
            total_votes=total_votes,
            win_votes_blind=0x31,
            total_votes_blind=0x32,
            user_serial=0x41,
            user_coin_blind=0x42,
            dao_serial=0x43,
            dao_coin_blind=0x44,
            input_value=1000,
            input_value_blind=0x45,
            dao_spend_hook=0x51,
            user_spend_hook=0x52,
            user_data=0x53,
        )
        params.update(overrides)
        return ExecBuilder(**params)
    return _make_exec
