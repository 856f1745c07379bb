"""
Token -> crowdsale deployment pipeline.

The crowdsale constructor needs the token address, so the two deployments
run strictly one after the other. A failed token deployment ends the run
with nothing on chain; a failed crowdsale deployment leaves the token live
and ends the run partially complete, ready for a resume that reuses it.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from web3 import Web3

from .artifacts import ArtifactSpec
from .errors import ParameterError, StateTransitionError, TransactionRejectedError
from .ledger import DeployedArtifactHandle
from .parameters import DeploymentParameters

logger = logging.getLogger(__name__)


class DeploymentState(str, Enum):
    NOT_STARTED = "NotStarted"
    TOKEN_DEPLOYING = "TokenDeploying"
    TOKEN_DEPLOYED = "TokenDeployed"
    CROWDSALE_DEPLOYING = "CrowdsaleDeploying"
    COMPLETE = "Complete"
    FAILED = "Failed"
    PARTIALLY_COMPLETE = "PartiallyComplete"


TRANSITIONS = {
    DeploymentState.NOT_STARTED: {DeploymentState.TOKEN_DEPLOYING, DeploymentState.TOKEN_DEPLOYED},
    DeploymentState.TOKEN_DEPLOYING: {DeploymentState.TOKEN_DEPLOYED, DeploymentState.FAILED},
    DeploymentState.TOKEN_DEPLOYED: {DeploymentState.CROWDSALE_DEPLOYING},
    DeploymentState.CROWDSALE_DEPLOYING: {DeploymentState.COMPLETE, DeploymentState.PARTIALLY_COMPLETE},
    DeploymentState.COMPLETE: set(),
    DeploymentState.FAILED: set(),
    DeploymentState.PARTIALLY_COMPLETE: set(),
}

TERMINAL_STATES = frozenset(state for state, targets in TRANSITIONS.items() if not targets)


class ResumeStrategy(str, Enum):
    """What to do about the token when resuming a partially complete run"""
    REUSE_TOKEN = "reuse-token"
    REDEPLOY_TOKEN = "redeploy-token"


class Ledger(Protocol):
    """What the orchestrator needs from a ledger collaborator"""

    def deploy(self, artifact: ArtifactSpec, constructor_args: Sequence[Any],
               tx_options: Dict[str, Any]) -> DeployedArtifactHandle:
        ...


@dataclass
class DeploymentRun:
    """Outcome of one orchestrator invocation"""
    network: str
    state: DeploymentState = DeploymentState.NOT_STARTED
    handles: List[DeployedArtifactHandle] = field(default_factory=list)
    token_handle: Optional[DeployedArtifactHandle] = None
    crowdsale_handle: Optional[DeployedArtifactHandle] = None
    failed_step: Optional[str] = None
    error: Optional[BaseException] = None
    resumed: bool = False

    @property
    def token_address(self) -> Optional[str]:
        return self.token_handle.address if self.token_handle else None

    @property
    def crowdsale_address(self) -> Optional[str]:
        return self.crowdsale_handle.address if self.crowdsale_handle else None

    @property
    def addresses(self) -> Tuple[Optional[str], Optional[str]]:
        return self.token_address, self.crowdsale_address

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, target: DeploymentState):
        if target not in TRANSITIONS[self.state]:
            raise StateTransitionError(
                f"Cannot move deployment from {self.state.value} to {target.value}",
                current_state=self.state.value,
                attempted_state=target.value,
            )
        logger.debug(f"[{self.network}] {self.state.value} -> {target.value}")
        self.state = target


class CrowdsaleDeployer:
    """Deploys the token, then the crowdsale wired to it"""

    def __init__(self, ledger: Ledger, token_artifact: ArtifactSpec, crowdsale_artifact: ArtifactSpec,
                 parameters: DeploymentParameters, network: str,
                 clock: Callable[[], float] = time.time):
        self.ledger = ledger
        self.token_artifact = token_artifact
        self.crowdsale_artifact = crowdsale_artifact
        self.parameters = parameters
        self.network = network
        self.clock = clock
        self.run_state: Optional[DeploymentRun] = None

    def run(self) -> DeploymentRun:
        """Deploy the token and then the crowdsale."""
        self.parameters.validate(now=self.clock())
        deployment = self._start()

        token_handle = self._deploy_token(deployment)
        if token_handle is None:
            return deployment
        self._deploy_crowdsale(deployment)
        return deployment

    def resume(self, strategy: ResumeStrategy, token_address: Optional[str] = None) -> DeploymentRun:
        """
        Finish a partially complete deployment.

        Args:
            strategy: REUSE_TOKEN deploys only the crowdsale against token_address;
                REDEPLOY_TOKEN runs the whole pipeline with a fresh token
            token_address: Address of the live token, required for REUSE_TOKEN only

        Raises:
            ParameterError: the strategy and token_address disagree, or the
                parameters are invalid
        """
        strategy = ResumeStrategy(strategy)
        if strategy is ResumeStrategy.REDEPLOY_TOKEN:
            if token_address is not None:
                raise ParameterError(
                    "A token address cannot be given when redeploying the token",
                    field='token_address',
                )
            deployment = self.run()
            deployment.resumed = True
            return deployment

        if not token_address or not Web3.is_address(token_address):
            raise ParameterError(
                f"Reusing the token requires a valid token address, got {token_address!r}",
                field='token_address',
            )
        self.parameters.validate(now=self.clock())

        deployment = self._start()
        deployment.resumed = True
        token_handle = DeployedArtifactHandle(name=self.token_artifact.name, address=token_address)
        deployment.token_handle = token_handle
        deployment.handles.append(token_handle)
        deployment.transition(DeploymentState.TOKEN_DEPLOYED)
        logger.info(f"[{self.network}] Resuming with existing {self.token_artifact.name} at {token_address}")

        self._deploy_crowdsale(deployment)
        return deployment

    def _start(self) -> DeploymentRun:
        if self.run_state is not None:
            raise StateTransitionError(
                "This deployer has already been used; create a new one for another run",
                current_state=self.run_state.state.value,
            )
        self.run_state = DeploymentRun(network=self.network)
        return self.run_state

    def _deploy_token(self, deployment: DeploymentRun) -> Optional[DeployedArtifactHandle]:
        name = self.token_artifact.name
        deployment.transition(DeploymentState.TOKEN_DEPLOYING)
        logger.info(f"[{self.network}] Deploying {name} (gas price {self.parameters.gas_price} wei)")

        try:
            handle = self.ledger.deploy(self.token_artifact, [], self.parameters.tx_options())
            if handle is None or not handle.address:
                raise TransactionRejectedError(f"{name} deployment returned no address", artifact=name)
        except Exception as e:
            deployment.failed_step = name
            deployment.error = e
            deployment.transition(DeploymentState.FAILED)
            logger.error(f"[{self.network}] {name} deployment failed, no artifacts deployed: {e}")
            return None

        deployment.token_handle = handle
        deployment.handles.append(handle)
        deployment.transition(DeploymentState.TOKEN_DEPLOYED)
        logger.info(f"[{self.network}] {name} deployed at {handle.address}")
        return handle

    def _deploy_crowdsale(self, deployment: DeploymentRun) -> Optional[DeployedArtifactHandle]:
        name = self.crowdsale_artifact.name
        token_address = deployment.token_address
        deployment.transition(DeploymentState.CROWDSALE_DEPLOYING)
        logger.info(f"[{self.network}] Deploying {name} for token {token_address}")

        try:
            handle = self.ledger.deploy(
                self.crowdsale_artifact,
                self.parameters.crowdsale_args(token_address),
                self.parameters.tx_options(),
            )
            if handle is None or not handle.address:
                raise TransactionRejectedError(f"{name} deployment returned no address", artifact=name)
        except Exception as e:
            deployment.failed_step = name
            deployment.error = e
            deployment.transition(DeploymentState.PARTIALLY_COMPLETE)
            logger.error(
                f"[{self.network}] {name} deployment failed; "
                f"{self.token_artifact.name} remains live at {token_address}: {e}"
            )
            return None

        deployment.crowdsale_handle = handle
        deployment.handles.append(handle)
        deployment.transition(DeploymentState.COMPLETE)
        logger.info(f"[{self.network}] {name} deployed at {handle.address}")
        return handle
