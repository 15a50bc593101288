"""
permledger.access: who may administer the ledger and who may use it.

- roles:      owner, whitelister and blacklister role sets
- compliance: per-account whitelist/blacklist flags and the enforcement switch
"""

from .compliance import ComplianceFlags
from .roles import (ROLE_BLACKLISTER, ROLE_WHITELISTER, RoleRegistry,
                    is_authorized)

__all__ = [
    "ComplianceFlags",
    "RoleRegistry",
    "is_authorized",
    "ROLE_WHITELISTER",
    "ROLE_BLACKLISTER",
]
