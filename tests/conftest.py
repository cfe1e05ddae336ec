"""
Shared fixtures for the engine tests.
"""
import sys
import os

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timelock_engine.services.decoders import known_registry

TIMELOCK = "0x" + "11" * 20
INNER_TIMELOCK = "0x" + "22" * 20
TOKEN = "0x" + "33" * 20
RECIPIENT = "0x" + "44" * 20


@pytest.fixture
def registry():
    """Two TimelockControllers and one ERC-20 token"""
    return known_registry(timelock_addresses=[TIMELOCK, INNER_TIMELOCK], token_addresses=[TOKEN])
