"""
Error classifications for deployment runs.

None of these are retried automatically: contract deployments are not
idempotent, so the operator decides what happens next.
"""

from typing import Optional, Dict, Any


class DeploymentError(Exception):
    """Base class for every failure raised by the deployment tooling."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(DeploymentError):
    """Missing or invalid credentials, endpoint, network or artifact."""

    def __init__(self, message: str, network: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.network = network


class ParameterError(DeploymentError):
    """Crowdsale parameters that would make the deployment fail on chain."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


class LedgerError(DeploymentError):
    """Failure reported while talking to the ledger for a given artifact."""

    def __init__(self, message: str, artifact: Optional[str] = None,
                 transaction_hash: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.artifact = artifact
        self.transaction_hash = transaction_hash


class NetworkError(LedgerError):
    """Transport or provider failure."""


class TransactionRejectedError(LedgerError):
    """The node rejected the transaction or the deployment reverted."""


class DeploymentTimeoutError(LedgerError, TimeoutError):
    """No receipt was observed within the configured bound."""

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class RunInProgressError(DeploymentError):
    """Another run already holds the lock for the signing credential."""

    def __init__(self, message: str, lock_path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.lock_path = lock_path


class StateTransitionError(DeploymentError):
    """Invalid deployment state transition."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_state: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_state = attempted_state
