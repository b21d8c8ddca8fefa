"""
Liquid Democracy DAO Deployment
===============================

Scripts for deploying a liquid democracy DAO from an on-chain template:

- units: management/department descriptors and voting settings
- template: client for the template contract's deployment API
- deployer: sequential prepare / install / distribute / finalize flow
- events: receipt log decoding
"""

__version__ = "0.1.0"
