#!/usr/bin/env python3
"""
Tests for deployment record files
"""

import json
import os
import pytest

from deployment.errors import NetworkError
from deployment.ledger import DeployedArtifactHandle
from deployment.orchestrator import DeploymentRun, DeploymentState
from deployment.records import read_record, write_record

DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def partial_run() -> DeploymentRun:
    token = DeployedArtifactHandle(name="DMT", address="0xToken1", transaction_hash="0xaa", block_number=1)
    return DeploymentRun(
        network="ropsten",
        state=DeploymentState.PARTIALLY_COMPLETE,
        handles=[token],
        token_handle=token,
        failed_step="DemoCrowdsale",
        error=NetworkError("connection reset"),
    )


class TestRecords:
    """Test class for deployment records"""

    def test_partial_record(self, tmp_path):
        path = write_record(str(tmp_path), partial_run(), DEPLOYER, "3")
        assert path == os.path.join(str(tmp_path), "ropsten.json")

        record = read_record(str(tmp_path), "ropsten")
        assert record["state"] == "PartiallyComplete"
        assert record["contracts"] == {"token": "0xToken1", "crowdsale": None}
        assert record["transactions"] == {"DMT": "0xaa"}
        assert record["failedStep"] == "DemoCrowdsale"
        assert record["deployer"] == DEPLOYER
        assert record["networkId"] == "3"

    def test_nothing_deployed_writes_nothing(self, tmp_path):
        run = DeploymentRun(network="ropsten", state=DeploymentState.FAILED)
        assert write_record(str(tmp_path), run, DEPLOYER, "3") is None
        assert read_record(str(tmp_path), "ropsten") is None

    def test_record_is_json(self, tmp_path):
        path = write_record(str(tmp_path), partial_run(), DEPLOYER, "3")
        with open(path) as f:
            assert json.load(f)["network"] == "ropsten"

    def test_unwritable_records_dir(self, tmp_path):
        """Test that a records dir below a regular file raises OSError"""
        blocker = tmp_path / "deployments"
        blocker.write_text("not a directory")
        with pytest.raises(OSError):
            write_record(str(blocker / "nested"), partial_run(), DEPLOYER, "3")


if __name__ == "__main__":
    pytest.main([__file__])
