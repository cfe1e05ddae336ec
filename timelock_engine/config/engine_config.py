"""
Engine Configuration Module

Contains the TimelockController constants, decoder limits and display
settings shared by the decoder, status calculator and role ledger.

Importing this module reads nothing from the environment; callers that want
different limits pass them to the engine functions explicitly.
"""

# Decoder limits
DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_NODES = 50
MAX_BATCH_CALLS = 50

# Delegation wrappers: function name -> inner call shape
SINGLE_CALL_WRAPPERS = {"execute", "schedule"}
BATCH_CALL_WRAPPERS = {"executeBatch", "scheduleBatch"}

# ERC-20 functions whose last argument is a token amount
TOKEN_AMOUNT_SIGNATURES = {
    "transfer(address,uint256)",
    "transferFrom(address,address,uint256)",
    "approve(address,uint256)",
}

# Ready-at sentinels used on-chain by TimelockController (_DONE_TIMESTAMP = 1)
UNSET_TIMESTAMP = 0
DONE_TIMESTAMP = 1
READY_AT_SENTINELS = {UNSET_TIMESTAMP, DONE_TIMESTAMP}

ZERO_BYTES32 = "0x" + "00" * 32

# TimelockController role hashes (keccak256 of role names)
DEFAULT_ADMIN_ROLE = "0x0000000000000000000000000000000000000000000000000000000000000000"
PROPOSER_ROLE = "0xb09aa5aeb3702cfd50b6b62bc4532604938f21248a27a1d5ca736082b6819cc1"
EXECUTOR_ROLE = "0xd8aa0f3194971a2a116679f7c2090f6939c8d4e01a2a8d7e41d55e5351469e63"
CANCELLER_ROLE = "0xfd643c72710c63c0180259aba6b2d05451e3591a24e58b6223913e945f67199f"

TIMELOCK_ROLES = {
    "DEFAULT_ADMIN": DEFAULT_ADMIN_ROLE,
    "PROPOSER": PROPOSER_ROLE,
    "EXECUTOR": EXECUTOR_ROLE,
    "CANCELLER": CANCELLER_ROLE,
}

ROLE_NAMES = {role_hash: name for name, role_hash in TIMELOCK_ROLES.items()}

# Calls that change who controls the system or how long it waits
DANGEROUS_SIGNATURES = {
    "upgradeTo(address)": "upgradeTo",
    "upgradeToAndCall(address,bytes)": "upgradeToAndCall",
    "transferOwnership(address)": "transferOwnership",
    "updateDelay(uint256)": "updateDelay",
}

# Native currency display
NATIVE_DECIMALS = 18
NATIVE_SYMBOL = "ETH"
