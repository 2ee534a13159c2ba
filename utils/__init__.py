"""Utilities for the election core."""

from .utils import (
    setup_logging,
    save_results,
    PerformanceMonitor,
    PerformanceMetrics,
    OperationContext,
    create_performance_report,
    get_system_info,
    format_duration,
    format_bytes
)
from .serialization import (
    CanonicalSerializable,
    int_to_hex,
    hex_to_int,
    to_canonical_bytes,
    to_pretty_json,
    from_json_bytes
)

__all__ = [
    'setup_logging',
    'save_results',
    'PerformanceMonitor',
    'PerformanceMetrics',
    'OperationContext',
    'create_performance_report',
    'get_system_info',
    'format_duration',
    'format_bytes',
    'CanonicalSerializable',
    'int_to_hex',
    'hex_to_int',
    'to_canonical_bytes',
    'to_pretty_json',
    'from_json_bytes'
]
