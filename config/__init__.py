"""Configuration management for the election core."""

from .config import SystemConfig, ElectionConfig, CryptoConfig, load_config, save_config, config_to_dict

__all__ = ['SystemConfig', 'ElectionConfig', 'CryptoConfig', 'load_config', 'save_config', 'config_to_dict']
