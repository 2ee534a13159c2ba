"""
Utilities for the Election Cryptographic Core
Logging setup, performance monitoring and result reporting
"""

import json
import logging
import platform
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import psutil

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'

_MB = 1024 * 1024


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Send every record to the console and to log_file (a timestamped file under logs/ by default)"""
    if log_file is None:
        log_file = Path("logs") / f"election_core_{datetime.now():%Y%m%d_%H%M%S}.log"
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # basicConfig is a no-op once the root logger has handlers
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()]
    )
    logger.info(f"Logging to {log_file} at level {log_level.upper()}")
    return logger


# ============================================================================
# PERFORMANCE MONITORING
# ============================================================================

@dataclass
class PerformanceMetrics:
    operation: str
    duration_seconds: float
    cpu_percent: float
    memory_mb: float
    timestamp: float
    thread: str = ""
    additional_data: Dict[str, Any] = field(default_factory=dict)


class PerformanceMonitor:
    """
    Per-operation timings with CPU and resident-memory readings.

    Operations may be measured from worker threads; recording is serialized
    on an internal lock.
    """

    def __init__(self):
        self.metrics: List[PerformanceMetrics] = []
        self.process = psutil.Process()
        self._lock = threading.Lock()

    def start_operation(self, operation_name: str) -> 'OperationContext':
        return OperationContext(self, operation_name)

    def record_metric(self, metric: PerformanceMetrics):
        with self._lock:
            self.metrics.append(metric)

    def _sample(self):
        """(cpu percent, rss in MB), zeros when psutil cannot read the process"""
        try:
            return self.process.cpu_percent(), self.process.memory_info().rss / _MB
        except psutil.Error as e:
            logger.debug(f"Could not sample process usage: {e}")
            return 0.0, 0.0

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            metrics = list(self.metrics)

        by_operation: Dict[str, List[PerformanceMetrics]] = {}
        for metric in metrics:
            by_operation.setdefault(metric.operation, []).append(metric)

        operations = {name: _operation_stats(group) for name, group in by_operation.items()}
        return {
            'total_operations': len(metrics),
            'total_duration': sum(op['total_duration'] for op in operations.values()),
            'operations': operations
        }

    def save_metrics(self, filepath: Path):
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            raw = [asdict(m) for m in self.metrics]
        with open(filepath, 'w') as f:
            json.dump({
                'metrics': raw,
                'summary': self.get_summary(),
                'system_info': get_system_info(),
                'timestamp': datetime.now().isoformat()
            }, f, indent=2, default=str)

    def reset(self):
        with self._lock:
            self.metrics.clear()


def _operation_stats(metrics: List[PerformanceMetrics]) -> Dict[str, Any]:
    durations = np.array([m.duration_seconds for m in metrics])
    cpu = np.array([m.cpu_percent for m in metrics if m.cpu_percent > 0])
    memory = np.array([m.memory_mb for m in metrics if m.memory_mb > 0])
    total = float(durations.sum())
    return {
        'count': len(metrics),
        'total_duration': total,
        'avg_duration': float(durations.mean()),
        'min_duration': float(durations.min()),
        'max_duration': float(durations.max()),
        'std_duration': float(durations.std()) if len(durations) > 1 else 0.0,
        'avg_cpu_percent': float(cpu.mean()) if cpu.size else 0.0,
        'avg_memory_mb': float(memory.mean()) if memory.size else 0.0,
        'peak_memory_mb': float(memory.max()) if memory.size else 0.0,
        'threads': len({m.thread for m in metrics}),
        'throughput_ops_per_sec': len(metrics) / total if total > 0 else 0.0
    }


class OperationContext:
    """Times one operation; failures are recorded too, then re-raised"""

    def __init__(self, monitor: PerformanceMonitor, operation_name: str):
        self.monitor = monitor
        self.operation_name = operation_name

    def __enter__(self):
        self.monitor._sample()  # first cpu_percent() call only primes the counter
        self.start_cpu, self.start_memory = self.monitor._sample()
        self.wall_start = time.time()
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        end_cpu, end_memory = self.monitor._sample()

        self.monitor.record_metric(PerformanceMetrics(
            operation=self.operation_name,
            duration_seconds=duration,
            cpu_percent=(self.start_cpu + end_cpu) / 2 if self.start_cpu > 0 and end_cpu > 0 else 0.0,
            memory_mb=max(self.start_memory, end_memory),
            timestamp=self.wall_start,
            thread=threading.current_thread().name,
            additional_data={'exception': exc_type is not None}
        ))
        return False


def get_system_info() -> Dict[str, Any]:
    info = {
        'platform': platform.platform(),
        'processor': platform.processor(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'timestamp': datetime.now().isoformat()
    }
    try:
        vm = psutil.virtual_memory()
        info.update({
            'cpu_count_physical': psutil.cpu_count(logical=False),
            'cpu_count_logical': psutil.cpu_count(logical=True),
            'total_memory_gb': round(vm.total / 1024 / _MB, 2),
            'available_memory_gb': round(vm.available / 1024 / _MB, 2),
        })
    except psutil.Error as e:
        logger.debug(f"Could not read system memory: {e}")
        info['psutil_error'] = str(e)
    return info


# ============================================================================
# RESULTS AND REPORTS
# ============================================================================

def convert_to_serializable(obj):
    """JSON-compatible form of pipeline results: election objects via to_dict, bytes as uppercase hex"""
    if hasattr(obj, 'to_dict'):
        return obj.to_dict()
    if isinstance(obj, dict):
        return {str(k): convert_to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [convert_to_serializable(item) for item in obj]
    if hasattr(obj, '__dataclass_fields__'):
        return convert_to_serializable(asdict(obj))
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, bytes):
        return obj.hex().upper()
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


def save_results(results: Dict[str, Any], filepath: Path):
    """Write results as JSON plus a <stem>_summary.txt beside it"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w') as f:
        json.dump({
            'metadata': {
                'generated_at': datetime.now().isoformat(),
                'system_info': get_system_info()
            },
            'data': convert_to_serializable(results)
        }, f, indent=2)

    summary_path = filepath.with_name(f"{filepath.stem}_summary.txt")
    summary_path.write_text(create_results_summary(results))
    logger.info(f"Results saved to {filepath} (summary: {summary_path.name})")


def _banner(title: str) -> List[str]:
    return ["=" * 80, f"ELECTION CORE - {title}", "=" * 80,
            f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}"]


def create_results_summary(results: Dict[str, Any]) -> str:
    lines = _banner("RESULTS SUMMARY")

    sections = [('election', "ELECTION"), ('hashes', "HASH CHAIN"), ('tally', "ELECTION TALLY")]
    for key, title in sections:
        if key in results:
            lines += ["", f"{title}:"] + [f"  {k}: {v}" for k, v in results[key].items()]

    if 'confirmation_codes' in results:
        lines += ["", "CONFIRMATION CODES:"]
        lines += [f"  Ballot {n}: {code}" for n, code in enumerate(results['confirmation_codes'], start=1)]

    if 'integrity_checks' in results:
        lines += ["", "INTEGRITY CHECKS:"]
        lines += [f"  {check}:  {'PASSED' if ok else 'FAILED'}"
                  for check, ok in results['integrity_checks'].items()]

    metrics = results.get('performance_metrics')
    if isinstance(metrics, dict):
        lines += ["", "PERFORMANCE METRICS:",
                  f"  total_operations: {metrics.get('total_operations', 0)}",
                  f"  total_duration: {format_duration(metrics.get('total_duration', 0.0))}"]

    lines += ["", "=" * 80]
    return "\n".join(lines)


def create_performance_report(monitor: PerformanceMonitor) -> str:
    summary = monitor.get_summary()
    lines = _banner("PERFORMANCE REPORT")
    lines.append(f"Total Operations: {summary['total_operations']}")
    lines.append(f"Total Duration: {format_duration(summary['total_duration'])}")

    if not summary['operations']:
        lines += ["", "No performance data available."]

    for name, op in summary['operations'].items():
        lines += [
            "",
            f"{name.upper()}:",
            f"  Executions: {op['count']} on {op['threads']} thread(s)",
            f"  Average Time: {format_duration(op['avg_duration'])} "
            f"(min {format_duration(op['min_duration'])}, max {format_duration(op['max_duration'])}, "
            f"std {format_duration(op['std_duration'])})",
            f"  Throughput: {op['throughput_ops_per_sec']:.2f} ops/sec",
        ]
        if op['avg_cpu_percent'] > 0:
            lines.append(f"  Average CPU: {op['avg_cpu_percent']:.1f}%")
        if op['peak_memory_mb'] > 0:
            lines.append(f"  Peak Memory: {format_bytes(op['peak_memory_mb'] * _MB)}")

    lines += ["", "=" * 80]
    return "\n".join(lines)


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    prefix = f"{hours}h " if hours else ""
    return f"{prefix}{minutes}m {secs:.1f}s"


def format_bytes(size: float) -> str:
    for unit in ('B', 'KB', 'MB', 'GB'):
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}TB"


__all__ = [
    'PerformanceMetrics',
    'PerformanceMonitor',
    'OperationContext',
    'setup_logging',
    'get_system_info',
    'convert_to_serializable',
    'save_results',
    'create_results_summary',
    'create_performance_report',
    'format_duration',
    'format_bytes'
]
