import asyncio
import contextlib
import logging
import time
from typing import List, Dict, Any, Tuple
from pathlib import Path
import argparse
import sys

from config.config import SystemConfig, load_config
from dao import (
    DAO_RELATIONS,
    DAO_VOTE_FUNC,
    DAO_CONTRACT_ID,
    ContractCall,
    DaoParams,
    ExecBuilder,
    Keypair,
    ProposalParams,
    ProposeBuilder,
    Transaction,
    TransactionVerifier,
    VoteBuilder,
    VotePublicInputs,
    VoteRecord,
    VoteTally,
    random_blind,
    sum_openings,
)
from zk import ConstraintViolation, ProofSystem, SparseMerkleTree, random_scalar
from utils.utils import setup_logging, save_results, PerformanceMonitor, create_performance_report

logger = logging.getLogger(__name__)

# (vote_option, token weight) per voter
SCENARIOS: Dict[str, List[Tuple[int, int]]] = {
    # quorum 3, ratio 1/2: three yes and two no passes
    'A': [(1, 1), (1, 1), (1, 1), (0, 1), (0, 1)],
    # two yes only: total weight 2 misses quorum 3
    'B': [(1, 1), (1, 1)],
}

GOV_TOKEN_ID = 0x676f76
TREASURY_TOKEN_ID = 0x747273


class GovernanceOrchestrator:
    """Runs one DAO through propose, vote and exec against a local registry"""

    def __init__(self, config: SystemConfig):
        self.config = config
        self.performance_monitor = PerformanceMonitor()
        self.proof_system = ProofSystem(
            DAO_RELATIONS,
            config=config.proof_config,
            monitor=self.performance_monitor if config.enable_benchmarking else None,
        )
        self.registry = SparseMerkleTree()
        self.verifier = TransactionVerifier(self.proof_system.backend)

        logger.info("Initialized governance orchestrator")

    @property
    def backend(self):
        return self.proof_system.backend

    def _timed(self, operation: str):
        if not self.config.enable_benchmarking:
            return contextlib.nullcontext()
        return self.performance_monitor.start_operation(operation)

    def register_dao(self, dao: DaoParams) -> int:
        position = self.registry.append(dao.bulla())
        self.verifier.add_root(self.registry.get_root())
        logger.info(f"Registered DAO at position {position}")
        return position

    async def propose(self, dao: DaoParams, proposal: ProposalParams, position: int,
                      total_funds: int) -> Dict[str, Any]:
        builder = ProposeBuilder(
            dao=dao,
            proposal=proposal,
            dao_leaf_position=position,
            dao_path=self.registry.get_path(position),
            total_funds=total_funds,
            funds_blind=random_scalar(),
            token_blind=random_blind(),
        )

        with self._timed("propose"):
            loop = asyncio.get_running_loop()
            call = await loop.run_in_executor(
                None, builder.build, self.backend, self.registry.get_root())

        result = self.verifier.verify(Transaction([call]))
        logger.info(f"Proposal {hex(call.call_data.proposal_bulla)}: {result.reason.value}")
        return {'call': call, 'verification': result}

    async def vote(self, dao: DaoParams, proposal: ProposalParams,
                   ballots: List[Tuple[int, int]], tally: VoteTally) -> List[Dict[str, Any]]:
        builders = [
            VoteBuilder(
                dao=dao,
                proposal=proposal,
                vote_option=option,
                value=weight,
                vote_blind=random_scalar(),
                value_blind=random_scalar(),
                token_blind=random_blind(),
            )
            for option, weight in ballots
        ]

        proofs = await self.proof_system.prove_batch(
            "dao-vote", [builder.witness() for builder in builders])

        records = []
        for builder, proof in zip(builders, proofs):
            call = ContractCall(
                contract_id=DAO_CONTRACT_ID,
                func_id=DAO_VOTE_FUNC,
                call_data=VotePublicInputs.from_list(proof.public_inputs),
                proofs=[proof],
            )
            result = self.verifier.verify(Transaction([call]))
            if result.valid:
                tally.add(VoteRecord.from_call(call))
            records.append({'call': call, 'opening': builder.opening(), 'verification': result})

        logger.info(f"Tallied {tally.vote_count}/{len(ballots)} votes")
        return records

    async def execute(self, dao: DaoParams, proposal: ProposalParams, votes: List[Dict[str, Any]],
                      tally: VoteTally, treasury: int) -> Dict[str, Any]:
        opening = sum_openings(v['opening'] for v in votes if v['verification'].valid)
        builder = ExecBuilder.from_tally(
            proposal,
            dao,
            opening,
            user_serial=random_blind(),
            user_coin_blind=random_blind(),
            dao_serial=random_blind(),
            dao_coin_blind=random_blind(),
            input_value=treasury,
            input_value_blind=random_scalar(),
        )

        try:
            with self._timed("exec"):
                loop = asyncio.get_running_loop()
                call = await loop.run_in_executor(None, builder.build, self.backend)
        except ConstraintViolation as e:
            logger.warning(f"Exec refused: {e}")
            return {'executed': False, 'failures': e.failures, 'tally': opening}

        result = self.verifier.verify(Transaction([call]), tally=tally)
        payout, change = builder.coins()
        return {
            'executed': result.valid,
            'verification': result,
            'tally': opening,
            'coins': {'payout': payout.value, 'change': change.value},
        }

    async def run_scenario(self, ballots: List[Tuple[int, int]]) -> Dict[str, Any]:
        start = time.time()

        dao_keypair = Keypair.random()
        dao = DaoParams(
            proposer_limit=10,
            quorum=3,
            approval_ratio_quot=1,
            approval_ratio_base=2,
            gov_token_id=GOV_TOKEN_ID,
            public_key=dao_keypair.public,
            bulla_blind=random_blind(),
        )
        position = self.register_dao(dao)

        proposal = ProposalParams(
            dest=Keypair.random().public,
            amount=100,
            serial=random_blind(),
            token_id=TREASURY_TOKEN_ID,
            blind=random_blind(),
        )

        proposed = await self.propose(dao, proposal, position, total_funds=25)
        if not proposed['verification'].valid:
            raise ValueError(f"Proposal rejected: {proposed['verification'].detail}")

        tally = VoteTally(proposed['call'].call_data.proposal_bulla)
        votes = await self.vote(dao, proposal, ballots, tally)
        executed = await self.execute(dao, proposal, votes, tally, treasury=1000)

        return {
            'proposal_bulla': tally.proposal_bulla,
            'dao_root': self.registry.get_root(),
            'votes_cast': len(ballots),
            'votes_tallied': tally.vote_count,
            'win_votes': executed['tally'].win_votes,
            'total_votes': executed['tally'].total_votes,
            'executed': executed['executed'],
            'failures': executed.get('failures', []),
            'coins': executed.get('coins'),
            'elapsed_seconds': time.time() - start,
        }

    def shutdown(self):
        self.proof_system.shutdown()


async def run_demo(config: SystemConfig, scenarios: List[str]) -> bool:
    print("=" * 80)
    print("PRIVATE DAO GOVERNANCE - PROPOSE / VOTE / EXEC")
    print("=" * 80)

    orchestrator = GovernanceOrchestrator(config)
    results = {}

    try:
        for name in scenarios:
            ballots = SCENARIOS[name]
            print(f"\nScenario {name}: {len(ballots)} ballots "
                  f"({sum(o for o, _ in ballots)} yes, {sum(1 - o for o, _ in ballots)} no)")

            outcome = await orchestrator.run_scenario(ballots)
            results[name] = outcome

            print(f"  Tally: {outcome['win_votes']} yes of {outcome['total_votes']} total")
            if outcome['executed']:
                print(f"  Executed: payout {outcome['coins']['payout']}, change {outcome['coins']['change']}")
            else:
                print(f"  Rejected: {', '.join(outcome['failures']) or 'verification failed'}")
            print(f"  Took {outcome['elapsed_seconds']:.2f}s")

        config.ensure_directories()
        report_path = config.results_dir / "governance_demo_report.json"
        save_results(results, report_path)

        if config.enable_benchmarking:
            perf_report = create_performance_report(orchestrator.performance_monitor)
            print("\n" + perf_report)
            with open(config.results_dir / "performance_report.txt", "w") as f:
                f.write(perf_report)

        print(f"\nFull results saved to: {report_path}")
        return True

    except (ConstraintViolation, ValueError) as e:
        logger.error(f"Demo failed: {e}")
        return False

    finally:
        orchestrator.shutdown()


def main():
    parser = argparse.ArgumentParser(
        description='Private DAO governance relations demo')
    parser.add_argument('--scenario', choices=['A', 'B', 'all'], default='all',
                        help='Voting scenario to run')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')

    args = parser.parse_args()

    config = load_config(Path(args.config))
    setup_logging(config.log_level, config.log_dir / "dao_governance.log")

    scenarios = sorted(SCENARIOS) if args.scenario == 'all' else [args.scenario]
    success = asyncio.run(run_demo(config, scenarios))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
