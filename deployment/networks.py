"""
Network profiles for deployment runs.

Each profile resolves a network name to an endpoint, a network id, a gas
budget and an HD wallet binding derived from the configured mnemonic.
Bindings are built fresh on every request and never cached.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from eth_account import Account
from web3 import Web3

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEVELOPMENT_URL = "http://127.0.0.1:8545/"
ANY_NETWORK = "*"

# Same derivation path as truffle-hdwallet-provider
HD_PATH_TEMPLATE = "m/44'/60'/0'/0/{index}"


@dataclass(frozen=True)
class Credentials:
    """Mnemonic and remote provider URL, passed through verbatim"""
    mnemonic: Optional[str] = None
    provider_url: Optional[str] = None


@dataclass(frozen=True)
class NetworkDefinition:
    """Static description of a network.

    An ``endpoint_url`` of None means the configured provider URL is used.
    """
    name: str
    network_id: str
    gas_budget: int
    endpoint_url: Optional[str] = None


@dataclass(frozen=True)
class HDWalletBinding:
    """Signing account plus the transport it sends through"""
    account: Any
    w3: Web3

    @property
    def address(self) -> str:
        return self.account.address


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    endpoint_url: str
    network_id: str
    gas_budget: int
    credential_source: HDWalletBinding


BindingFactory = Callable[[str, str, int], HDWalletBinding]


def default_networks() -> Dict[str, NetworkDefinition]:
    """Return a new mapping with the ropsten and development profiles."""
    return {
        "ropsten": NetworkDefinition(
            name="ropsten",
            network_id="3",
            gas_budget=4412388,
        ),
        "development": NetworkDefinition(
            name="development",
            network_id=ANY_NETWORK,
            gas_budget=6721975,
            endpoint_url=DEVELOPMENT_URL,
        ),
    }


def hd_wallet_binding(mnemonic: str, endpoint_url: str, account_index: int = 0,
                      request_timeout: int = 60) -> HDWalletBinding:
    """Derive the deployer account from the mnemonic and bind it to an HTTP provider."""
    Account.enable_unaudited_hdwallet_features()
    try:
        account = Account.from_mnemonic(
            mnemonic, account_path=HD_PATH_TEMPLATE.format(index=account_index)
        )
    except Exception as e:
        # eth_account raises ValidationError or ValueError depending on the failure
        raise ConfigurationError(f"Could not derive an account from the configured mnemonic: {e}") from e

    w3 = Web3(Web3.HTTPProvider(endpoint_url, request_kwargs={'timeout': request_timeout}))
    return HDWalletBinding(account=account, w3=w3)


class NetworkConfigProvider:
    """Resolves network names to profiles"""

    def __init__(self, credentials: Credentials,
                 networks: Optional[Mapping[str, NetworkDefinition]] = None,
                 binding_factory: Optional[BindingFactory] = None,
                 account_index: int = 0):
        self.credentials = credentials
        self.networks = dict(networks) if networks is not None else default_networks()
        self.binding_factory = binding_factory or hd_wallet_binding
        self.account_index = account_index

    def names(self) -> List[str]:
        return sorted(self.networks)

    def get_profile(self, name: str) -> NetworkProfile:
        """
        Build the profile for a network name.

        Args:
            name: Network name, e.g. "ropsten" or "development"

        Returns:
            NetworkProfile with a freshly constructed wallet binding

        Raises:
            ConfigurationError: unknown network or missing mnemonic/URL
        """
        definition = self.networks.get(name)
        if definition is None:
            raise ConfigurationError(
                f"Unknown network '{name}'. Available networks: {', '.join(self.names())}",
                network=name,
            )

        endpoint_url = definition.endpoint_url or self.credentials.provider_url
        if not endpoint_url:
            raise ConfigurationError(
                f"No provider URL configured for network '{name}' (set providerUrl or PROVIDER_URL)",
                network=name,
            )
        if not self.credentials.mnemonic:
            raise ConfigurationError(
                f"No mnemonic configured for network '{name}' (set mnemonic or MNEMONIC)",
                network=name,
            )

        binding = self.binding_factory(self.credentials.mnemonic, endpoint_url, self.account_index)
        logger.info(f"Resolved network '{name}' at {endpoint_url} for account {binding.address}")

        return NetworkProfile(
            name=definition.name,
            endpoint_url=endpoint_url,
            network_id=definition.network_id,
            gas_budget=definition.gas_budget,
            credential_source=binding,
        )
