"""
Configuration loader for the store SDK
"""

import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

SDK_VERSION = "1.0.0"

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "sdk_config.yml"

# env var -> config field
ENV_OVERRIDES = {
    "STORE_PROJECT_ID": "project_id",
    "STORE_LOGIN_PROJECT_ID": "login_project_id",
    "STORE_API_URL": "store_api_url",
    "STORE_LOGIN_API_URL": "login_api_url",
    "STORE_SANDBOX": "sandbox",
    "STORE_SHIPPING_BUILD": "shipping_build",
    "STORE_TIMEOUT_SECONDS": "timeout_seconds",
}


class SDKConfig(BaseModel):
    """Store and login SDK configuration"""

    project_id: str = ""
    login_project_id: str = ""

    store_api_url: str = "https://store.xsolla.com/api"
    login_api_url: str = "https://login.xsolla.com/api"
    token_validation_url: str = "https://us-central1-xsolla-login-jwt.cloudfunctions.net/verify"
    paystation_url: str = "https://secure.xsolla.com/paystation3"
    sandbox_paystation_url: str = "https://sandbox-secure.xsolla.com/paystation3"

    sandbox: bool = True
    shipping_build: bool = False
    enable_sandbox_in_shipping: bool = False

    build_for_steam: bool = False
    use_platform_browser: bool = True

    use_proxy_login: bool = False
    callback_url: str = ""
    account_linking_url: str = ""
    platform_authentication_url: str = ""

    engine: str = "python"
    engine_version: str = Field(default_factory=platform.python_version)
    sdk_version: str = SDK_VERSION

    timeout_seconds: float = Field(default=30.0, ge=1.0, le=600.0)

    def is_sandbox_enabled(self) -> bool:
        if not self.shipping_build:
            return self.sandbox

        enabled = self.sandbox and self.enable_sandbox_in_shipping
        if enabled:
            logger.warning("Sandbox should be disabled in shipping build")
        return enabled


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None and value.strip() != "":
            overrides[field_name] = value.strip()
    return overrides


def load_sdk_config(config_path: Optional[Path] = None, use_defaults_if_missing: bool = False) -> SDKConfig:
    """
    Load and validate SDK configuration from YAML file plus environment overrides

    Args:
        config_path: Path to config file. Defaults to config/sdk_config.yml
        use_defaults_if_missing: Fall back to built-in defaults when the file is absent

    Returns:
        Validated SDKConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist and defaults were not requested
        ValidationError: If config doesn't match schema
    """
    load_dotenv()

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif not use_defaults_if_missing:
        raise FileNotFoundError(f"SDK config file not found: {config_path}")
    else:
        logger.info("SDK config file not found at %s; using defaults", config_path)

    data.update(_env_overrides())

    try:
        cfg = SDKConfig(**data)
        logger.info("Successfully loaded SDK config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("SDK config validation failed: %s", e)
        raise
