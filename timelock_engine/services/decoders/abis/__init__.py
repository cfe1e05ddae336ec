"""
Embedded ABIs used to seed an interface registry.

Entries built here are tagged KNOWN_REGISTRY / HIGH: the interfaces are
standard and do not depend on a lookup service.
"""

import logging
from typing import Iterable, Optional

from .common import TIMELOCK_CONTROLLER_ABI, ERC20_ABI
from ..base import InterfaceSource, Confidence
from ..interfaces import InterfaceEntry, InterfaceRegistry

logger = logging.getLogger(__name__)


def timelock_entry(address: str) -> InterfaceEntry:
    return InterfaceEntry.from_abi(address, TIMELOCK_CONTROLLER_ABI,
                                   InterfaceSource.KNOWN_REGISTRY, Confidence.HIGH)


def erc20_entry(address: str) -> InterfaceEntry:
    return InterfaceEntry.from_abi(address, ERC20_ABI,
                                   InterfaceSource.KNOWN_REGISTRY, Confidence.HIGH)


def known_registry(timelock_addresses: Iterable[str] = (),
                   token_addresses: Iterable[str] = (),
                   base: Optional[InterfaceRegistry] = None) -> InterfaceRegistry:
    """
    Registry holding the embedded TimelockController and ERC-20 interfaces.

    Args:
        timelock_addresses: TimelockController deployments
        token_addresses: ERC-20 tokens targeted by operations
        base: Registry whose entries are copied first; embedded entries then
              replace any entry for the same address

    Returns:
        New InterfaceRegistry; `base` is not modified
    """
    registry = base.snapshot() if base is not None else InterfaceRegistry()
    for address in timelock_addresses:
        registry.register(timelock_entry(address))
    for address in token_addresses:
        registry.register(erc20_entry(address))
    logger.debug(f"Seeded registry with {len(registry)} interfaces")
    return registry


__all__ = [
    'TIMELOCK_CONTROLLER_ABI',
    'ERC20_ABI',
    'timelock_entry',
    'erc20_entry',
    'known_registry',
]
