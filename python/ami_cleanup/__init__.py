"""
Public AMI cleanup.

This package provides the pieces behind the public_ami_cleanup tool:
- inventory: DescribeImages/ModifyImageAttribute wrappers and normalization
- lineage: linking cross-region copies to their canonical-region source
- selector / status: the interactive list state and how revocation events change it
- dispatcher: bounded-concurrency revocation
- render / tui: the full-screen list
"""
