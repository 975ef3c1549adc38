"""
Contract calls as they appear inside a transaction
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from zk.backend import Proof

DAO_CONTRACT_ID = "DAO"

DAO_PROPOSE_FUNC = "DAO::propose()"
DAO_VOTE_FUNC = "DAO::vote()"
DAO_EXEC_FUNC = "DAO::exec()"


@dataclass
class ContractCall:
    """One function call: typed call data plus the proofs backing it"""
    contract_id: str
    func_id: str
    call_data: Any
    proofs: List[Proof] = field(default_factory=list)

    @property
    def token_commit(self) -> Optional[int]:
        return getattr(self.call_data, 'token_commit', None)

    def is_dao_call(self) -> bool:
        return self.contract_id == DAO_CONTRACT_ID
