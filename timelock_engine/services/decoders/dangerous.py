"""
Dangerous call detection.

Flags calls that hand over control of a contract or change the timelock
delay: upgradeTo, upgradeToAndCall, transferOwnership, updateDelay.
Matching is by selector so it works without any interface description.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from eth_utils import function_signature_to_4byte_selector

from .base import DecodedCall
from ...config.engine_config import DANGEROUS_SIGNATURES

logger = logging.getLogger(__name__)

DANGEROUS_SELECTORS: Dict[str, str] = {
    "0x" + function_signature_to_4byte_selector(sig).hex(): name
    for sig, name in DANGEROUS_SIGNATURES.items()
}


@dataclass(frozen=True)
class DangerousCall:
    """A call recognised as dangerous"""
    function_name: str
    selector: str
    target: Optional[str] = None


def get_dangerous_call(calldata) -> Optional[DangerousCall]:
    """Check raw calldata (0x hex string or bytes) against the dangerous selectors"""
    if isinstance(calldata, (bytes, bytearray)):
        calldata = "0x" + bytes(calldata).hex()
    if not calldata or not isinstance(calldata, str):
        return None
    if not calldata.startswith("0x") or len(calldata) < 10:
        return None

    selector = calldata[:10].lower()
    name = DANGEROUS_SELECTORS.get(selector)
    if name is None:
        return None
    return DangerousCall(function_name=name, selector=selector)


def find_dangerous_calls(root: DecodedCall) -> List[DangerousCall]:
    """All dangerous calls in a decoded tree, outermost first"""
    found = []
    for node in root.walk():
        name = DANGEROUS_SELECTORS.get(node.selector)
        if name:
            found.append(DangerousCall(function_name=name, selector=node.selector, target=node.target))
    if found:
        logger.debug(f"Found {len(found)} dangerous call(s): {[d.function_name for d in found]}")
    return found
