"""Application modules.

This package contains all feature modules for the GST letter platform:
- auth: Account registration, login, bearer authentication
- credits: Credit ledger and meter
- billing: Plan purchases and the upgrade applier
- letters: Letter generation gateway and history
"""
