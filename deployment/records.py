"""
Deployment record files.

After a run that put something on chain, ``<records_dir>/<network>.json``
holds the addresses the operator (and later tooling) needs.
"""

import os
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .orchestrator import DeploymentRun

logger = logging.getLogger(__name__)


def record_path(records_dir: str, network: str) -> str:
    return os.path.join(records_dir, f'{network}.json')


def build_record(run: DeploymentRun, deployer: str, network_id: str) -> Dict[str, Any]:
    """Serializable summary of a run."""
    return {
        'network': run.network,
        'networkId': network_id,
        'deployer': deployer,
        'state': run.state.value,
        'resumed': run.resumed,
        'contracts': {
            'token': run.token_address,
            'crowdsale': run.crowdsale_address,
        },
        'transactions': {
            handle.name: handle.transaction_hash
            for handle in run.handles
            if handle.transaction_hash
        },
        'failedStep': run.failed_step,
        'error': str(run.error) if run.error else None,
        'updatedAt': datetime.now().isoformat(),
    }


def write_record(records_dir: str, run: DeploymentRun, deployer: str, network_id: str) -> Optional[str]:
    """Write the record if anything was deployed; returns the file path or None."""
    if not run.handles:
        return None

    os.makedirs(records_dir, exist_ok=True)
    file_path = record_path(records_dir, run.network)
    with open(file_path, 'w') as f:
        json.dump(build_record(run, deployer, network_id), f, indent=2)
    logger.info(f"Deployment record written to {file_path}")
    return file_path


def read_record(records_dir: str, network: str) -> Optional[Dict[str, Any]]:
    file_path = record_path(records_dir, network)
    try:
        with open(file_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        return None
