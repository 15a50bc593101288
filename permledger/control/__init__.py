"""
permledger.control: execution controls.

- pausable:   global owner-controlled pause switch
- reentrancy: scoped non-reentrancy latch
"""

from .pausable import PauseSwitch
from .reentrancy import ReentrancyGuard, nonreentrant

__all__ = ["PauseSwitch", "ReentrancyGuard", "nonreentrant"]
