"""
Utility modules for the store SDK
"""
from .config_loader import SDKConfig, load_sdk_config

__all__ = [
    'SDKConfig',
    'load_sdk_config',
]
