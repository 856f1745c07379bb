"""
Configuration loading.

Credentials come from config.json (``mnemonic``, ``providerUrl``) and can be
overridden by the MNEMONIC and PROVIDER_URL environment variables, which may
be set in a .env file. Everything else is read from the environment.
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .ledger import DEFAULT_RECEIPT_TIMEOUT
from .locking import DEFAULT_LOCK_DIR
from .networks import Credentials

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.json'
DEFAULT_PARAMS_FILE = 'sale.json'
DEFAULT_BUILD_DIR = os.path.join('build', 'contracts')
DEFAULT_RECORDS_DIR = 'deployments'
DEFAULT_LOG_FILE = 'deployment.log'


@dataclass(frozen=True)
class Settings:
    """Runtime settings for a deployment run"""
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    account_index: int = 0
    lock_dir: str = DEFAULT_LOCK_DIR
    build_dir: str = DEFAULT_BUILD_DIR
    records_dir: str = DEFAULT_RECORDS_DIR
    log_file: str = DEFAULT_LOG_FILE
    slack_webhook: Optional[str] = None


def load_credentials(config_path: str = DEFAULT_CONFIG_FILE) -> Credentials:
    """Read credentials from the JSON config file, then apply environment overrides."""
    load_dotenv()

    data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config file {config_path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a JSON object")
    else:
        logger.debug(f"Config file {config_path} not found, using environment only")

    return Credentials(
        mnemonic=os.getenv("MNEMONIC") or data.get('mnemonic'),
        provider_url=os.getenv("PROVIDER_URL") or data.get('providerUrl'),
    )


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def load_settings() -> Settings:
    load_dotenv()
    receipt_timeout = _env_number("DEPLOY_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT, float)
    if receipt_timeout <= 0:
        raise ConfigurationError("DEPLOY_RECEIPT_TIMEOUT must be positive")
    account_index = _env_number("DEPLOY_ACCOUNT_INDEX", 0, int)
    if account_index < 0:
        raise ConfigurationError("DEPLOY_ACCOUNT_INDEX must not be negative")

    return Settings(
        receipt_timeout=receipt_timeout,
        account_index=account_index,
        lock_dir=os.getenv("DEPLOY_LOCK_DIR", DEFAULT_LOCK_DIR),
        build_dir=os.getenv("DEPLOY_BUILD_DIR", DEFAULT_BUILD_DIR),
        records_dir=os.getenv("DEPLOY_RECORDS_DIR", DEFAULT_RECORDS_DIR),
        log_file=os.getenv("DEPLOY_LOG_FILE", DEFAULT_LOG_FILE),
        slack_webhook=os.getenv("SLACK_WEBHOOK") or None,
    )
