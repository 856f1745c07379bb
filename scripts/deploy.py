#!/usr/bin/env python3
"""
Deploy the DMT token and DemoCrowdsale.

    python -m scripts.deploy deploy --network ropsten
    python -m scripts.deploy resume --network ropsten --token-address 0x...
    python -m scripts.deploy resume --network ropsten --fresh-token

Exit codes: 0 complete, 1 nothing deployed, 3 partially complete.
"""

import sys
import logging
import argparse
from typing import List, Optional

from web3 import Web3

from deployment.artifacts import CROWDSALE_CONTRACT, TOKEN_CONTRACT, load_artifact
from deployment.config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_PARAMS_FILE,
    load_credentials,
    load_settings,
)
from deployment.errors import DeploymentError, ParameterError
from deployment.ledger import Web3Ledger
from deployment.locking import CredentialLock
from deployment.networks import NetworkConfigProvider, default_networks
from deployment.notifications import SlackNotifier, notify_failure
from deployment.orchestrator import CrowdsaleDeployer, DeploymentRun, DeploymentState, ResumeStrategy
from deployment.parameters import load_parameters
from deployment.records import write_record

logger = logging.getLogger(__name__)

EXIT_COMPLETE = 0
EXIT_FAILED = 1
EXIT_PARTIALLY_COMPLETE = 3


def configure_logging(log_file: str, verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy the DMT token and DemoCrowdsale")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--network", required=True, choices=sorted(default_networks()),
                        help="Target network")
    common.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help="JSON file with mnemonic and providerUrl (default: %(default)s)")
    common.add_argument("--params", default=DEFAULT_PARAMS_FILE,
                        help="JSON file with the crowdsale parameters (default: %(default)s)")
    common.add_argument("--timeout", type=positive_seconds, default=None,
                        help="Seconds to wait for each deployment receipt")
    common.add_argument("--log-file", default=None, help="Log file path")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("deploy", parents=[common], help="Deploy the token, then the crowdsale")

    resume = commands.add_parser("resume", parents=[common],
                                 help="Finish a partially complete deployment")
    choice = resume.add_mutually_exclusive_group(required=True)
    choice.add_argument("--token-address", help="Reuse the token already deployed at this address")
    choice.add_argument("--fresh-token", action="store_true", help="Deploy a new token as well")
    return parser


def resume_command(network: str, token_address: str) -> str:
    return f"python -m scripts.deploy resume --network {network} --token-address {token_address}"


def report(run: DeploymentRun) -> int:
    """Print the outcome of a run and return the process exit code."""
    if run.state is DeploymentState.COMPLETE:
        print(f"Deployment complete on {run.network}")
        print(f"  Token:     {run.token_address}")
        print(f"  Crowdsale: {run.crowdsale_address}")
        return EXIT_COMPLETE

    if run.state is DeploymentState.PARTIALLY_COMPLETE:
        print(f"Deployment PARTIALLY complete on {run.network}: {run.failed_step} failed: {run.error}")
        print(f"  Token is live at {run.token_address}")
        print("  To deploy only the crowdsale against it, run:")
        print(f"    {resume_command(run.network, run.token_address)}")
        return EXIT_PARTIALLY_COMPLETE

    print(f"Deployment failed on {run.network}: {run.failed_step} failed: {run.error}")
    print("  No artifacts deployed")
    return EXIT_FAILED


def execute(args: argparse.Namespace) -> int:
    try:
        settings = load_settings()
    except DeploymentError as e:
        print(f"Deployment aborted: {e}")
        return EXIT_FAILED
    configure_logging(args.log_file or settings.log_file, args.verbose)
    receipt_timeout = args.timeout if args.timeout is not None else settings.receipt_timeout

    try:
        # --- 1. Configuration ---
        credentials = load_credentials(args.config)
        parameters = load_parameters(args.params)
        token_artifact = load_artifact(settings.build_dir, TOKEN_CONTRACT)
        crowdsale_artifact = load_artifact(settings.build_dir, CROWDSALE_CONTRACT)

        # --- 2. Connect to the network ---
        provider = NetworkConfigProvider(credentials, account_index=settings.account_index)
        profile = provider.get_profile(args.network)
        ledger = Web3Ledger.from_profile(profile, receipt_timeout=receipt_timeout)
        ledger.verify_network()

        # --- 3. Deploy ---
        with CredentialLock(ledger.deployer_address, settings.lock_dir):
            deployer = CrowdsaleDeployer(
                ledger, token_artifact, crowdsale_artifact, parameters, network=profile.name
            )
            if args.command == "resume" and args.token_address:
                if not Web3.is_address(args.token_address):
                    raise ParameterError(
                        f"Not a valid token address: {args.token_address!r}",
                        field='token_address',
                    )
                if not ledger.has_code(args.token_address):
                    raise ParameterError(
                        f"No contract found at {args.token_address} on {profile.name}",
                        field='token_address',
                    )
                run = deployer.resume(ResumeStrategy.REUSE_TOKEN, token_address=args.token_address)
            elif args.command == "resume":
                run = deployer.resume(ResumeStrategy.REDEPLOY_TOKEN)
            else:
                run = deployer.run()
    except DeploymentError as e:
        logger.error(f"Deployment aborted before anything was deployed: {e}")
        print(f"Deployment aborted: {e}")
        print("  No artifacts deployed")
        return EXIT_FAILED

    exit_code = report(run)
    if exit_code != EXIT_COMPLETE:
        notifier = SlackNotifier(settings.slack_webhook) if settings.slack_webhook else None
        notify_failure(notifier, run, f"{run.state.value} on {run.network}")

    try:
        write_record(settings.records_dir, run, ledger.deployer_address, profile.network_id)
    except OSError as e:
        logger.error(f"Could not write the deployment record to {settings.records_dir}: {e}")
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return execute(args)


if __name__ == "__main__":
    sys.exit(main())
