"""
Embedded ABIs for the contracts every timelock dashboard decodes.
Function entries only; events and errors are not needed for calldata.
"""


def _fn(name, inputs, outputs=None, state_mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t, "internalType": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t, "internalType": t} for n, t in (outputs or [])],
        "stateMutability": state_mutability,
    }


TIMELOCK_CONTROLLER_ABI = [
    _fn("schedule", [("target", "address"), ("value", "uint256"), ("data", "bytes"),
                     ("predecessor", "bytes32"), ("salt", "bytes32"), ("delay", "uint256")]),
    _fn("scheduleBatch", [("targets", "address[]"), ("values", "uint256[]"), ("payloads", "bytes[]"),
                          ("predecessor", "bytes32"), ("salt", "bytes32"), ("delay", "uint256")]),
    _fn("execute", [("target", "address"), ("value", "uint256"), ("payload", "bytes"),
                    ("predecessor", "bytes32"), ("salt", "bytes32")], state_mutability="payable"),
    _fn("executeBatch", [("targets", "address[]"), ("values", "uint256[]"), ("payloads", "bytes[]"),
                         ("predecessor", "bytes32"), ("salt", "bytes32")], state_mutability="payable"),
    _fn("cancel", [("id", "bytes32")]),
    _fn("updateDelay", [("newDelay", "uint256")]),
    _fn("grantRole", [("role", "bytes32"), ("account", "address")]),
    _fn("revokeRole", [("role", "bytes32"), ("account", "address")]),
    _fn("renounceRole", [("role", "bytes32"), ("callerConfirmation", "address")]),
    _fn("hashOperation", [("target", "address"), ("value", "uint256"), ("data", "bytes"),
                          ("predecessor", "bytes32"), ("salt", "bytes32")],
        [("", "bytes32")], "pure"),
    _fn("hashOperationBatch", [("targets", "address[]"), ("values", "uint256[]"), ("payloads", "bytes[]"),
                               ("predecessor", "bytes32"), ("salt", "bytes32")],
        [("", "bytes32")], "pure"),
    _fn("getMinDelay", [], [("", "uint256")], "view"),
    _fn("getTimestamp", [("id", "bytes32")], [("", "uint256")], "view"),
    _fn("isOperation", [("id", "bytes32")], [("", "bool")], "view"),
    _fn("isOperationPending", [("id", "bytes32")], [("", "bool")], "view"),
    _fn("isOperationReady", [("id", "bytes32")], [("", "bool")], "view"),
    _fn("isOperationDone", [("id", "bytes32")], [("", "bool")], "view"),
    _fn("hasRole", [("role", "bytes32"), ("account", "address")], [("", "bool")], "view"),
    _fn("getRoleAdmin", [("role", "bytes32")], [("", "bytes32")], "view"),
    {"type": "receive", "stateMutability": "payable"},
]

ERC20_ABI = [
    _fn("transfer", [("to", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn("transferFrom", [("from", "address"), ("to", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn("balanceOf", [("account", "address")], [("", "uint256")], "view"),
    _fn("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")], "view"),
    _fn("totalSupply", [], [("", "uint256")], "view"),
    _fn("decimals", [], [("", "uint8")], "view"),
    _fn("symbol", [], [("", "string")], "view"),
    _fn("name", [], [("", "string")], "view"),
]
