from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging
import multiprocessing

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

SUPPORTED_BACKENDS = ("transparent",)


def _default_workers() -> int:
    return max(1, multiprocessing.cpu_count())


@dataclass
class ProofConfig:
    """Which backend proves the DAO relations and how many proofs run at once"""
    backend: str = "transparent"
    max_concurrent_proofs: int = 8
    parallel_workers: int = field(default_factory=_default_workers)

    def __post_init__(self):
        if self.backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported proof backend: {self.backend}")
        if self.max_concurrent_proofs < 1:
            raise ValueError("max_concurrent_proofs must be at least 1")
        if self.parallel_workers < 1:
            raise ValueError("parallel_workers must be at least 1")


@dataclass
class SystemConfig:
    proof_config: ProofConfig = field(default_factory=ProofConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

        if self.enable_debug_mode:
            self.log_level = "DEBUG"

    def ensure_directories(self):
        for directory in (self.log_dir, self.results_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """YAML layout: one section per concern"""
        return {
            'proofs': {
                'backend': self.proof_config.backend,
                'max_concurrent_proofs': self.proof_config.max_concurrent_proofs,
                'parallel_workers': self.proof_config.parallel_workers,
            },
            'logging': {
                'level': self.log_level,
                'dir': str(self.log_dir),
                'debug': self.enable_debug_mode,
            },
            'results': {
                'dir': str(self.results_dir),
                'benchmarking': self.enable_benchmarking,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SystemConfig':
        """Missing sections and keys fall back to their defaults"""
        proofs = data.get('proofs') or {}
        logging_section = data.get('logging') or {}
        results = data.get('results') or {}
        defaults = cls()

        return cls(
            proof_config=ProofConfig(**proofs),
            log_dir=logging_section.get('dir', defaults.log_dir),
            results_dir=results.get('dir', defaults.results_dir),
            log_level=logging_section.get('level', defaults.log_level),
            enable_benchmarking=results.get('benchmarking', defaults.enable_benchmarking),
            enable_debug_mode=logging_section.get('debug', defaults.enable_debug_mode),
        )


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from YAML; a missing or unreadable file yields defaults"""
    config_path = Path(config_path or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            return SystemConfig.from_dict(yaml.safe_load(f) or {})
    except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
        logger.warning(f"Could not load config file {config_path}: {e}")
        logger.warning("Using default configuration")
        return SystemConfig()


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    config_path = Path(config_path or DEFAULT_CONFIG_PATH)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
    except OSError as e:
        logger.warning(f"Could not save config file {config_path}: {e}")
