import os
import json
from dataclasses import dataclass
from typing import Any, List

from .errors import ConfigurationError

TOKEN_CONTRACT = "DMT"
CROWDSALE_CONTRACT = "DemoCrowdsale"


@dataclass(frozen=True)
class ArtifactSpec:
    """Compiled contract ready to be deployed"""
    name: str
    abi: List[Any]
    bytecode: str


def load_artifact(build_dir: str, name: str) -> ArtifactSpec:
    """Loads a contract ABI and bytecode from its JSON artifact (Truffle or Hardhat layout)."""
    file_path = os.path.join(build_dir, f'{name}.json')
    try:
        with open(file_path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Contract artifact not found: {file_path}. Compile the contracts first.") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Contract artifact {file_path} is not valid JSON: {e}") from e

    abi = data.get('abi')
    bytecode = data.get('bytecode')
    # solc standard JSON output nests the bytecode object
    if isinstance(bytecode, dict):
        bytecode = bytecode.get('object')

    if not abi:
        raise ConfigurationError(f"Contract artifact {file_path} has no ABI")
    if not bytecode or bytecode in ('0x', '0x0'):
        raise ConfigurationError(f"Contract artifact {file_path} has no bytecode")
    if not bytecode.startswith('0x'):
        bytecode = '0x' + bytecode

    return ArtifactSpec(name=data.get('contractName', name), abi=abi, bytecode=bytecode)
