"""
Deployment Scripts
==================

Command line entry points for deploying the DMT token sale.

Structure:
- deploy: token + crowdsale deployment and resume of partial runs
"""

__version__ = "1.0.0"
__author__ = "DMT Team"
