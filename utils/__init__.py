"""Logging, proof timing and result persistence."""

from .utils import (
    PerformanceMonitor,
    ProofTiming,
    create_performance_report,
    get_system_info,
    save_results,
    setup_logging,
)

__all__ = [
    'PerformanceMonitor',
    'ProofTiming',
    'create_performance_report',
    'get_system_info',
    'save_results',
    'setup_logging',
]
