from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from errors import InvalidParameterError
from algebra.csprng import MAX_REJECTION_ATTEMPTS
from algebra.parameters import PARAMETER_SETS
from elgamal.discrete_log import DEFAULT_TABLE_BITS

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class ElectionConfig:
    num_guardians: int = 5
    quorum: int = 3
    date: str = ""
    info: str = ""
    manifest_path: Optional[Path] = None

    def __post_init__(self):
        if self.manifest_path is not None:
            self.manifest_path = Path(self.manifest_path)
        if self.num_guardians < 1:
            raise InvalidParameterError(
                f"num_guardians must be positive, got {self.num_guardians}")
        if not 1 <= self.quorum <= self.num_guardians:
            raise InvalidParameterError(
                f"quorum must be in [1, {self.num_guardians}], got {self.quorum}")


@dataclass
class CryptoConfig:
    parameters: str = "standard"
    csprng_seed: Optional[str] = None
    max_rejection_attempts: int = MAX_REJECTION_ATTEMPTS
    dlog_table_bits: int = DEFAULT_TABLE_BITS
    max_workers: int = 4

    def __post_init__(self):
        if self.parameters not in PARAMETER_SETS:
            raise InvalidParameterError(
                f"Unknown parameter set '{self.parameters}'. Known sets: {sorted(PARAMETER_SETS)}")
        if self.max_rejection_attempts < 1:
            raise InvalidParameterError("max_rejection_attempts must be positive")
        if self.dlog_table_bits < 1:
            raise InvalidParameterError("dlog_table_bits must be positive")
        if self.max_workers < 1:
            raise InvalidParameterError("max_workers must be positive")


@dataclass
class SystemConfig:
    election: ElectionConfig = field(default_factory=ElectionConfig)
    crypto: CryptoConfig = field(default_factory=CryptoConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)

        self.log_level = str(self.log_level).upper()
        if self.enable_debug_mode:
            self.log_level = 'DEBUG'
        if self.log_level not in VALID_LOG_LEVELS:
            raise InvalidParameterError(f"Unknown log level '{self.log_level}'")


def _config_from_dict(config_data: Dict[str, Any]) -> SystemConfig:
    election_data = config_data.get('election', {}) or {}
    crypto_data = config_data.get('crypto', {}) or {}

    election = ElectionConfig(
        num_guardians=election_data.get('num_guardians', 5),
        quorum=election_data.get('quorum', 3),
        date=election_data.get('date', ""),
        info=election_data.get('info', ""),
        manifest_path=election_data.get('manifest_path')
    )

    seed = crypto_data.get('csprng_seed')
    crypto = CryptoConfig(
        parameters=crypto_data.get('parameters', 'standard'),
        csprng_seed=None if seed is None else str(seed),
        max_rejection_attempts=crypto_data.get('max_rejection_attempts', MAX_REJECTION_ATTEMPTS),
        dlog_table_bits=crypto_data.get('dlog_table_bits', DEFAULT_TABLE_BITS),
        max_workers=crypto_data.get('max_workers', 4)
    )

    return SystemConfig(
        election=election,
        crypto=crypto,
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        log_level=config_data.get('log_level', 'INFO'),
        enable_benchmarking=config_data.get('enable_benchmarking', True),
        enable_debug_mode=config_data.get('enable_debug_mode', False)
    )


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidParameterError(f"Could not parse config file {config_path}: {e}") from e

    if config_data is None:
        return SystemConfig()
    if not isinstance(config_data, dict):
        raise InvalidParameterError(f"Config file {config_path} must contain a mapping")

    try:
        return _config_from_dict(config_data)
    except (TypeError, AttributeError) as e:
        raise InvalidParameterError(f"Malformed config file {config_path}: {e}") from e


def config_to_dict(config: SystemConfig) -> Dict[str, Any]:
    return {
        'election': {
            'num_guardians': config.election.num_guardians,
            'quorum': config.election.quorum,
            'date': config.election.date,
            'info': config.election.info,
            'manifest_path': None if config.election.manifest_path is None
            else str(config.election.manifest_path)
        },
        'crypto': {
            'parameters': config.crypto.parameters,
            'csprng_seed': config.crypto.csprng_seed,
            'max_rejection_attempts': config.crypto.max_rejection_attempts,
            'dlog_table_bits': config.crypto.dlog_table_bits,
            'max_workers': config.crypto.max_workers
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'enable_benchmarking': config.enable_benchmarking,
        'enable_debug_mode': config.enable_debug_mode
    }


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")

    with open(config_path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False)
    logger.debug(f"Saved configuration to {config_path}")
