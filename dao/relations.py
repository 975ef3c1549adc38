"""
Registry of the DAO relations, keyed by relation id
"""

from typing import Dict

from zk.constraints import Relation

from .calls import DAO_EXEC_FUNC, DAO_PROPOSE_FUNC, DAO_VOTE_FUNC
from .exec import EXEC_RELATION
from .propose import PROPOSE_RELATION
from .vote import VOTE_RELATION

DAO_RELATIONS: Dict[str, Relation] = {
    relation.relation_id: relation
    for relation in (PROPOSE_RELATION, VOTE_RELATION, EXEC_RELATION)
}

FUNC_TO_RELATION: Dict[str, Relation] = {
    DAO_PROPOSE_FUNC: PROPOSE_RELATION,
    DAO_VOTE_FUNC: VOTE_RELATION,
    DAO_EXEC_FUNC: EXEC_RELATION,
}
