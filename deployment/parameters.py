"""
Crowdsale constructor parameters.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from web3 import Web3

from .errors import ParameterError

# JSON keys as used by sale.json
FIELD_KEYS = {
    'beneficiary_address': 'wallet',
    'opening_time': 'openingTime',
    'closing_time': 'closingTime',
    'exchange_rate': 'rate',
    'funding_goal': 'goal',
    'funding_cap': 'cap',
    'gas_price': 'gasPrice',
}


@dataclass(frozen=True)
class DeploymentParameters:
    """Arguments of the DemoCrowdsale constructor plus the gas price for both deployments"""
    beneficiary_address: str
    opening_time: int
    closing_time: int
    exchange_rate: int
    funding_goal: int
    funding_cap: int
    gas_price: int

    def crowdsale_args(self, token_address: str) -> list:
        """Constructor arguments in DemoCrowdsale order."""
        return [
            self.beneficiary_address,
            token_address,
            self.opening_time,
            self.closing_time,
            self.exchange_rate,
            self.funding_goal,
            self.funding_cap,
        ]

    def tx_options(self) -> Dict[str, int]:
        return {'gasPrice': self.gas_price}

    def validate(self, now: Optional[float] = None) -> "DeploymentParameters":
        """
        Check the parameters before any fee is spent.

        Args:
            now: Current Unix time; defaults to time.time()

        Returns:
            self, so calls can be chained

        Raises:
            ParameterError: naming the first offending field
        """
        if now is None:
            now = time.time()

        if not Web3.is_address(self.beneficiary_address):
            raise ParameterError(
                f"Beneficiary wallet is not a valid address: {self.beneficiary_address!r}",
                field='beneficiary_address',
            )

        for field in ('opening_time', 'closing_time', 'exchange_rate',
                      'funding_goal', 'funding_cap', 'gas_price'):
            if getattr(self, field) < 0:
                raise ParameterError(f"{field} must not be negative", field=field)

        if self.opening_time > self.closing_time:
            raise ParameterError(
                f"Opening time {self.opening_time} is after closing time {self.closing_time}",
                field='opening_time',
            )
        if self.opening_time < now:
            raise ParameterError(
                f"Opening time {self.opening_time} is in the past (now: {int(now)})",
                field='opening_time',
                context={'now': int(now)},
            )
        if self.exchange_rate == 0:
            raise ParameterError("Exchange rate must be greater than zero", field='exchange_rate')
        if self.funding_cap == 0:
            raise ParameterError("Funding cap must be greater than zero", field='funding_cap')
        if self.funding_goal > self.funding_cap:
            raise ParameterError(
                f"Funding goal {self.funding_goal} exceeds funding cap {self.funding_cap}",
                field='funding_goal',
            )
        return self


def _to_int(value: Union[int, str, Any], field: str) -> int:
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool):
        raise ParameterError(f"{field} must be an integer, got {value!r}", field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            pass
    raise ParameterError(f"{field} must be an integer or a decimal string, got {value!r}", field=field)


def parameters_from_dict(data: Dict[str, Any]) -> DeploymentParameters:
    """Build parameters from a sale.json style mapping; amounts may be strings."""
    missing = [key for key in FIELD_KEYS.values() if key not in data]
    if missing:
        raise ParameterError(f"Missing deployment parameters: {', '.join(missing)}")

    wallet = data[FIELD_KEYS['beneficiary_address']]
    if not isinstance(wallet, str):
        raise ParameterError(f"wallet must be a string, got {wallet!r}", field='beneficiary_address')

    values = {
        field: _to_int(data[key], field)
        for field, key in FIELD_KEYS.items()
        if field != 'beneficiary_address'
    }
    return DeploymentParameters(beneficiary_address=wallet, **values)


def load_parameters(file_path: str, now: Optional[float] = None) -> DeploymentParameters:
    """Load and validate deployment parameters from a JSON file."""
    try:
        with open(file_path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ParameterError(f"Deployment parameters file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise ParameterError(f"Deployment parameters file {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParameterError(f"Deployment parameters file {file_path} must contain a JSON object")

    return parameters_from_dict(data).validate(now)
