"""
Web3 backed ledger collaborator.

Signs contract-creation transactions locally with the HD wallet account and
waits, with a bound, for their receipts. web3 and requests exceptions are
translated into the deployment error taxonomy; nothing is retried.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests
from web3 import Web3
from web3.exceptions import (
    ContractLogicError,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
    Web3ValidationError,
)

from .artifacts import ArtifactSpec
from .errors import (
    ConfigurationError,
    DeploymentTimeoutError,
    NetworkError,
    ParameterError,
    TransactionRejectedError,
)
from .networks import ANY_NETWORK, HDWalletBinding, NetworkProfile

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_TIMEOUT = 600
DEFAULT_POLL_LATENCY = 1.0


@dataclass(frozen=True)
class DeployedArtifactHandle:
    name: str
    address: str
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None


def checksum_args(args: Sequence[Any]) -> List[Any]:
    """Convert address-looking string arguments to checksum form."""
    converted = []
    for arg in args:
        if isinstance(arg, str) and Web3.is_address(arg.lower()):
            converted.append(Web3.to_checksum_address(arg))
        else:
            converted.append(arg)
    return converted


class Web3Ledger:
    """Deploys artifacts through a web3 connection"""

    def __init__(self, binding: HDWalletBinding, gas_budget: int, network_id: str = ANY_NETWORK,
                 receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
                 poll_latency: float = DEFAULT_POLL_LATENCY):
        self.binding = binding
        self.w3 = binding.w3
        self.account = binding.account
        self.gas_budget = gas_budget
        self.network_id = network_id
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency

    @classmethod
    def from_profile(cls, profile: NetworkProfile,
                     receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT) -> "Web3Ledger":
        return cls(
            profile.credential_source,
            gas_budget=profile.gas_budget,
            network_id=profile.network_id,
            receipt_timeout=receipt_timeout,
        )

    @property
    def deployer_address(self) -> str:
        return self.account.address

    def verify_network(self) -> int:
        """Check the endpoint is reachable and serves the expected chain; returns the chain id."""
        try:
            if not self.w3.is_connected():
                raise NetworkError(f"Could not connect to the RPC endpoint at {self._endpoint()}")
            chain_id = self.w3.eth.chain_id
        except (requests.exceptions.RequestException, ProviderConnectionError) as e:
            raise NetworkError(f"Could not query the RPC endpoint at {self._endpoint()}: {e}") from e

        if self.network_id != ANY_NETWORK and str(chain_id) != str(self.network_id):
            raise ConfigurationError(
                f"Endpoint {self._endpoint()} serves chain {chain_id}, expected network id {self.network_id}",
                context={'chain_id': chain_id},
            )
        logger.info(f"Connected to chain {chain_id} as {self.deployer_address}")
        return chain_id

    def deploy(self, artifact: ArtifactSpec, constructor_args: Sequence[Any],
               tx_options: Dict[str, Any]) -> DeployedArtifactHandle:
        """
        Deploy a contract and wait for its receipt.

        Args:
            artifact: Compiled contract
            constructor_args: Constructor arguments in ABI order
            tx_options: Extra transaction fields, e.g. {'gasPrice': ...}

        Returns:
            DeployedArtifactHandle for the confirmed contract

        Raises:
            NetworkError, TransactionRejectedError, DeploymentTimeoutError
        """
        tx_hash: Optional[str] = None
        try:
            contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
            tx_params = {
                'from': self.deployer_address,
                'nonce': self.w3.eth.get_transaction_count(self.deployer_address, 'pending'),
                'gas': self.gas_budget,
                'chainId': self.w3.eth.chain_id,
            }
            tx_params.update(tx_options)
            tx = contract.constructor(*checksum_args(constructor_args)).build_transaction(tx_params)

            signed_tx = self.account.sign_transaction(tx)
            tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed_tx.raw_transaction))
            logger.info(f"{artifact.name} deployment sent: {tx_hash}")

            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout, poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise DeploymentTimeoutError(
                f"{artifact.name} deployment {tx_hash} was not confirmed within {self.receipt_timeout}s",
                timeout=self.receipt_timeout, artifact=artifact.name, transaction_hash=tx_hash,
            ) from e
        except (requests.exceptions.RequestException, ProviderConnectionError) as e:
            raise NetworkError(
                f"Network failure while deploying {artifact.name}: {e}",
                artifact=artifact.name, transaction_hash=tx_hash,
            ) from e
        except (ContractLogicError, Web3RPCError, Web3ValidationError) as e:
            raise TransactionRejectedError(
                f"{artifact.name} deployment rejected: {e}",
                artifact=artifact.name, transaction_hash=tx_hash,
            ) from e

        if receipt['status'] != 1:
            raise TransactionRejectedError(
                f"{artifact.name} deployment reverted in block {receipt['blockNumber']}",
                artifact=artifact.name, transaction_hash=tx_hash,
            )
        address = receipt.get('contractAddress')
        if not address:
            raise TransactionRejectedError(
                f"{artifact.name} receipt carries no contract address",
                artifact=artifact.name, transaction_hash=tx_hash,
            )

        logger.info(f"{artifact.name} confirmed in block {receipt['blockNumber']} at {address}")
        return DeployedArtifactHandle(
            name=artifact.name,
            address=address,
            transaction_hash=tx_hash,
            block_number=receipt['blockNumber'],
        )

    def has_code(self, address: str) -> bool:
        """True if a contract is deployed at the address."""
        if not Web3.is_address(address):
            raise ParameterError(f"Not a valid contract address: {address!r}", field='token_address')
        try:
            code = self.w3.eth.get_code(Web3.to_checksum_address(address))
        except (requests.exceptions.RequestException, ProviderConnectionError) as e:
            raise NetworkError(f"Could not read code at {address}: {e}") from e
        return len(code) > 0

    def _endpoint(self) -> str:
        return getattr(self.w3.provider, 'endpoint_uri', repr(self.w3.provider))
