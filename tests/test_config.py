import json
from pathlib import Path

import pytest

from config import ProofConfig, SystemConfig, load_config, save_config
from utils.utils import (
    PerformanceMonitor,
    convert_to_serializable,
    create_performance_report,
    format_duration,
    save_results,
)
from zk import RejectionReason


def test_defaults():
    config = SystemConfig()
    assert config.proof_config.backend == "transparent"
    assert config.proof_config.parallel_workers >= 1
    assert config.log_level == "INFO"


def test_debug_mode_sets_level():
    assert SystemConfig(enable_debug_mode=True).log_level == "DEBUG"


def test_invalid_proof_config():
    with pytest.raises(ValueError):
        ProofConfig(backend="groth16")
    with pytest.raises(ValueError):
        ProofConfig(max_concurrent_proofs=0)
    with pytest.raises(ValueError):
        ProofConfig(parallel_workers=0)


def test_save_and_load(tmp_path):
    path = tmp_path / "config.yaml"
    config = SystemConfig(
        proof_config=ProofConfig(max_concurrent_proofs=3, parallel_workers=2),
        log_dir=tmp_path / "logs",
        results_dir=tmp_path / "results",
        log_level="WARNING",
        enable_benchmarking=False,
    )
    save_config(config, path)
    loaded = load_config(path)

    assert loaded.proof_config.max_concurrent_proofs == 3
    assert loaded.proof_config.parallel_workers == 2
    assert loaded.log_dir == tmp_path / "logs"
    assert loaded.log_level == "WARNING"
    assert loaded.enable_benchmarking is False


def test_missing_file_uses_defaults(tmp_path):
    loaded = load_config(tmp_path / "missing.yaml")
    assert loaded == SystemConfig()


def test_invalid_yaml_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("proofs: [1, 2\n")
    assert load_config(path) == SystemConfig()


def test_unsupported_backend_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("proofs:\n  backend: groth16\n")
    assert load_config(path).proof_config.backend == "transparent"


def test_ensure_directories(tmp_path):
    config = SystemConfig(log_dir=tmp_path / "a", results_dir=tmp_path / "b")
    config.ensure_directories()
    assert (tmp_path / "a").is_dir()
    assert (tmp_path / "b").is_dir()


def test_serializable_field_elements():
    data = convert_to_serializable({
        'small': 5,
        'big': 1 << 200,
        'reason': RejectionReason.TALLY_MISMATCH,
        'path': Path("x"),
        'flag': True,
    })
    assert data == {'small': 5, 'big': hex(1 << 200), 'reason': 'tally_mismatch', 'path': 'x', 'flag': True}


def test_save_results(tmp_path):
    path = tmp_path / "out" / "results.json"
    save_results({'root': 1 << 100}, path)
    assert json.loads(path.read_text()) == {'root': hex(1 << 100)}


def test_performance_report():
    monitor = PerformanceMonitor()
    with monitor.start_operation("prove:dao-vote"):
        pass
    with pytest.raises(RuntimeError):
        with monitor.start_operation("prove:dao-vote"):
            raise RuntimeError("boom")

    summary = monitor.get_summary()
    assert summary['operations']['prove:dao-vote']['count'] == 2
    assert summary['operations']['prove:dao-vote']['failures'] == 1
    assert "prove:dao-vote" in create_performance_report(monitor)


def test_format_duration():
    assert format_duration(0.5) == "500.0ms"
    assert format_duration(2) == "2.00s"
    assert format_duration(125) == "2m 5.0s"
