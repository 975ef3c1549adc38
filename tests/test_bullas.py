"""
DAO and proposal bullas, coins and keys
"""

from dataclasses import replace

import pytest

from dao import Coin, DaoParams, Keypair, dao_bulla, proposal_bulla, token_commitment
from zk import PRIME, EdwardsPoint, PedersenGenerators, bind_hash

DAO_SCALARS = ('proposer_limit', 'quorum', 'gov_token_id', 'bulla_blind')
PROPOSAL_SCALARS = ('amount', 'serial', 'token_id', 'blind')


def test_dao_bulla_deterministic(dao):
    assert dao.bulla() == dao_bulla(dao)
    assert dao.bulla() == replace(dao).bulla()
    assert dao.bulla() == bind_hash(*dao.bulla_fields())


@pytest.mark.parametrize('name', DAO_SCALARS)
def test_dao_bulla_binds_every_field(dao, name):
    changed = replace(dao, **{name: getattr(dao, name) + 1})
    assert changed.bulla() != dao.bulla()


def test_dao_bulla_binds_ratio_and_key(dao):
    assert replace(dao, approval_ratio_quot=2).bulla() != dao.bulla()
    assert replace(dao, approval_ratio_base=3).bulla() != dao.bulla()
    assert replace(dao, public_key=Keypair.from_secret(1).public).bulla() != dao.bulla()


def test_dao_field_order(dao):
    fields = dao.bulla_fields()
    assert fields[:5] == [10, 3, 1, 2, dao.gov_token_id]
    assert fields[5:7] == [dao.public_key.x, dao.public_key.y]
    assert fields[7] == dao.bulla_blind


def test_ratio_validation(dao):
    with pytest.raises(ValueError):
        replace(dao, approval_ratio_base=0, approval_ratio_quot=0)
    with pytest.raises(ValueError):
        replace(dao, approval_ratio_quot=3, approval_ratio_base=2)
    # A ratio of exactly 1 is allowed
    assert replace(dao, approval_ratio_quot=2).approval_ratio_quot == 2


def test_dao_field_validation(dao):
    with pytest.raises(ValueError):
        replace(dao, quorum=PRIME)
    with pytest.raises(ValueError):
        replace(dao, proposer_limit=-1)
    with pytest.raises(ValueError):
        replace(dao, public_key=EdwardsPoint(1, 2))


@pytest.mark.parametrize('name', PROPOSAL_SCALARS)
def test_proposal_bulla_binds_every_field(dao, proposal, name):
    parent = dao.bulla()
    changed = replace(proposal, **{name: getattr(proposal, name) + 1})
    assert changed.bulla(parent) != proposal.bulla(parent)


def test_proposal_bulla_binds_dao(dao, proposal):
    other = replace(dao, bulla_blind=dao.bulla_blind + 1)
    assert proposal.bulla(dao.bulla()) != proposal.bulla(other.bulla())
    assert proposal.bulla(dao.bulla()) == proposal_bulla(proposal, dao.bulla())


def test_proposal_validation(proposal):
    with pytest.raises(ValueError):
        replace(proposal, amount=PRIME)
    with pytest.raises(ValueError):
        replace(proposal, dest=EdwardsPoint(3, 4))


def test_token_commitment():
    assert token_commitment(5, 6) == bind_hash(5, 6)
    assert token_commitment(5, 6) != token_commitment(5, 7)


def test_coin_commitment(dao_keypair):
    coin = Coin(
        owner=dao_keypair.public,
        value=10,
        token_id=1,
        serial=2,
        spend_hook=3,
        user_data=4,
        coin_blind=5,
    )
    assert coin.commitment() == bind_hash(*coin.fields())
    assert replace(coin, value=11).commitment() != coin.commitment()
    assert replace(coin, owner=Keypair.from_secret(9).public).commitment() != coin.commitment()


def test_keypair():
    keypair = Keypair.from_secret(42)
    assert keypair.public == PedersenGenerators.SPEND_AUTH * 42
    assert keypair.public.is_on_curve()
    assert Keypair.from_secret(42) == keypair
    assert Keypair.random().public.is_on_curve()
