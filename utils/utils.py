"""
Run-time support for governance runs: logging setup, proof timing and
persisting run results as JSON.
"""

import json
import logging
import platform
import time
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import psutil

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'

_MB = 1024 * 1024


@dataclass
class ProofTiming:
    """One timed operation, typically ``prove:<relation>`` or ``verify:<relation>``"""
    operation: str
    duration_seconds: float
    cpu_percent: float
    rss_mb: float
    started_at: float
    failed: bool = False


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Route the root logger to a log file and the console"""
    if log_file is None:
        log_file = Path("logs") / f"dao_governance_{datetime.now():%Y%m%d_%H%M%S}.log"
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    for handler in (logging.FileHandler(log_file), logging.StreamHandler()):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Executor and event-loop chatter is not useful at INFO
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging to {log_file} at {log_level.upper()}")
    return logger


class PerformanceMonitor:
    """Collects ProofTiming records from prove and verify calls"""

    def __init__(self):
        self.timings: List[ProofTiming] = []
        self.process = psutil.Process()

    def start_operation(self, operation_name: str) -> 'TimedOperation':
        return TimedOperation(self, operation_name)

    def record(self, timing: ProofTiming):
        self.timings.append(timing)

    def get_summary(self) -> Dict[str, Any]:
        by_operation: Dict[str, List[ProofTiming]] = {}
        for timing in list(self.timings):
            by_operation.setdefault(timing.operation, []).append(timing)

        operations = {}
        for name, timings in by_operation.items():
            durations = np.fromiter((t.duration_seconds for t in timings), dtype=float)
            total = float(durations.sum())
            operations[name] = {
                'count': len(timings),
                'failures': sum(t.failed for t in timings),
                'total_duration': total,
                'avg_duration': float(durations.mean()),
                'p50_duration': float(np.percentile(durations, 50)),
                'p95_duration': float(np.percentile(durations, 95)),
                'max_duration': float(durations.max()),
                'peak_rss_mb': max(t.rss_mb for t in timings),
                'ops_per_second': len(timings) / total if total > 0 else 0.0,
            }

        return {
            'total_operations': sum(op['count'] for op in operations.values()),
            'total_duration': sum(op['total_duration'] for op in operations.values()),
            'operations': operations,
        }

    def save_metrics(self, filepath: Path):
        save_results({
            'timings': self.timings,
            'summary': self.get_summary(),
            'system_info': get_system_info(),
        }, filepath)

    def reset(self):
        self.timings.clear()


class TimedOperation:
    """Context manager recording wall time, CPU and resident memory"""

    def __init__(self, monitor: PerformanceMonitor, operation: str):
        self.monitor = monitor
        self.operation = operation
        self.started_at = 0.0
        self.start_rss = 0.0

    def __enter__(self):
        # First cpu_percent call only primes the counter
        self.monitor.process.cpu_percent()
        self.start_rss = self.monitor.process.memory_info().rss / _MB
        self.started_at = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.started_at
        end_rss = self.monitor.process.memory_info().rss / _MB
        self.monitor.record(ProofTiming(
            operation=self.operation,
            duration_seconds=elapsed,
            cpu_percent=self.monitor.process.cpu_percent(),
            rss_mb=max(self.start_rss, end_rss),
            started_at=self.started_at,
            failed=exc_type is not None,
        ))


def get_system_info() -> Dict[str, Any]:
    """Host description stored next to benchmark results"""
    return {
        'platform': platform.platform(),
        'python': platform.python_version(),
        'numpy': np.__version__,
        'cpus': psutil.cpu_count(logical=True),
        'physical_cpus': psutil.cpu_count(logical=False),
        'memory_gb': round(psutil.virtual_memory().total / 1024 ** 3, 2),
        'recorded_at': datetime.now().isoformat(),
    }


def convert_to_serializable(obj: Any) -> Any:
    """JSON form of dataclasses, enums, paths and big field elements"""
    if is_dataclass(obj) and not isinstance(obj, type):
        return convert_to_serializable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): convert_to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [convert_to_serializable(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, bool) or obj is None or isinstance(obj, (str, float)):
        return obj
    if isinstance(obj, int):
        # Field elements overflow JSON number precision in most consumers
        return hex(obj) if obj.bit_length() > 53 else obj
    return str(obj)


def save_results(results: Dict[str, Any], filepath: Path):
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w') as f:
        json.dump(convert_to_serializable(results), f, indent=2)
    logging.getLogger(__name__).info(f"Results saved to {filepath}")


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes)}m {secs:.1f}s"


def create_performance_report(monitor: PerformanceMonitor) -> str:
    """Plain-text table of prove/verify timings"""
    summary = monitor.get_summary()
    rule = "-" * 72
    lines = [
        rule,
        f"{'operation':<24}{'count':>6}{'failed':>8}{'avg':>11}{'p95':>11}{'max':>11}",
        rule,
    ]
    for name, op in sorted(summary['operations'].items()):
        lines.append(
            f"{name:<24}{op['count']:>6}{op['failures']:>8}"
            f"{format_duration(op['avg_duration']):>11}"
            f"{format_duration(op['p95_duration']):>11}"
            f"{format_duration(op['max_duration']):>11}")
    lines.append(rule)
    lines.append(f"{summary['total_operations']} operations in {format_duration(summary['total_duration'])}")
    return "\n".join(lines)
