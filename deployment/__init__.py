"""
DMT Crowdsale Deployment
========================

Tooling for deploying the DMT token and its DemoCrowdsale to a network.

Structure:
- networks: named network profiles and HD wallet bindings
- parameters: crowdsale constructor parameters and their validation
- artifacts: compiled contract loading
- ledger: web3 backed deployment collaborator
- orchestrator: token -> crowdsale deployment pipeline
- records: deployment record files
"""

__version__ = "1.0.0"
__author__ = "DMT Team"
