"""
Async proof orchestration.

Voters prove independently and verifiers check proofs independently, so both
sides are exposed as coroutines that fan out to a thread pool, bounded by a
semaphore. Relation evaluation itself stays synchronous and pure.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from config.config import ProofConfig
from utils.utils import PerformanceMonitor

from .backend import Proof, ProofBackend, TransparentBackend, VerificationResult
from .constraints import Relation

# Production logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_backend(config: ProofConfig, relations: Mapping[str, Relation]) -> ProofBackend:
    if config.backend == "transparent":
        logger.warning("Using the transparent backend: proofs open their witnesses")
        return TransparentBackend(relations)
    raise ValueError(f"Unsupported proof backend: {config.backend}")


class ProofSystem:
    """Complete proof system: backend, bounded concurrency and timing"""

    def __init__(
        self,
        relations: Mapping[str, Relation],
        config: Optional[ProofConfig] = None,
        monitor: Optional[PerformanceMonitor] = None,
        backend: Optional[ProofBackend] = None,
    ):
        self.config = config or ProofConfig()
        self.backend = backend or create_backend(self.config, relations)
        self.monitor = monitor
        self._executor = ThreadPoolExecutor(max_workers=self.config.parallel_workers)
        self._semaphore: Optional[asyncio.Semaphore] = None

    def _limiter(self) -> asyncio.Semaphore:
        # Created lazily so it binds to the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent_proofs)
        return self._semaphore

    def prove_sync(self, relation_id: str, witness: Any) -> Proof:
        relation = self.backend.get_relation(relation_id)
        if self.monitor is None:
            return self.backend.prove(relation, witness)
        with self.monitor.start_operation(f"prove:{relation_id}"):
            return self.backend.prove(relation, witness)

    def check_sync(self, relation_id: str, proof: Proof, public_inputs: Any) -> VerificationResult:
        if self.monitor is None:
            return self.backend.check(relation_id, proof, public_inputs)
        with self.monitor.start_operation(f"verify:{relation_id}"):
            return self.backend.check(relation_id, proof, public_inputs)

    async def prove(self, relation_id: str, witness: Any) -> Proof:
        async with self._limiter():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, self.prove_sync, relation_id, witness)

    async def check(self, relation_id: str, proof: Proof, public_inputs: Any) -> VerificationResult:
        async with self._limiter():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                self._executor, self.check_sync, relation_id, proof, public_inputs)

    async def verify(self, relation_id: str, proof: Proof, public_inputs: Any) -> bool:
        result = await self.check(relation_id, proof, public_inputs)
        return result.valid

    async def prove_batch(self, relation_id: str, witnesses: Sequence[Any]) -> List[Proof]:
        """Prove independent witnesses concurrently; the first failure propagates"""
        logger.info(f"Proving batch of {len(witnesses)} {relation_id} witnesses")
        return list(await asyncio.gather(*(self.prove(relation_id, w) for w in witnesses)))

    async def verify_batch(
        self, items: Sequence[Tuple[str, Proof, Any]]
    ) -> List[VerificationResult]:
        """Verify (relation_id, proof, public_inputs) triples concurrently"""
        results = await asyncio.gather(*(self.check(*item) for item in items))
        accepted = sum(1 for r in results if r.valid)
        logger.info(f"Verified batch: {accepted}/{len(results)} accepted")
        return list(results)

    def shutdown(self):
        self._executor.shutdown(wait=True)
