"""
Operation id hashing.

Reproduces TimelockController.hashOperation / hashOperationBatch so that an
operation id reported by the indexer can be re-verified client-side:

    id = keccak256(abi.encode(target, value, data, predecessor, salt))
    id = keccak256(abi.encode(targets, values, payloads, predecessor, salt))
"""

from typing import Sequence, Union
import logging

from eth_abi import encode as abi_encode
from web3 import Web3

from .models import Operation
from ..decoders.base import normalize_hex
from ...exceptions import RecordParseError

logger = logging.getLogger(__name__)

HexOrBytes = Union[str, bytes, bytearray]

SINGLE_OPERATION_TYPES = ['address', 'uint256', 'bytes', 'bytes32', 'bytes32']
BATCH_OPERATION_TYPES = ['address[]', 'uint256[]', 'bytes[]', 'bytes32', 'bytes32']


def _to_bytes(value: HexOrBytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(normalize_hex(value)[2:])


def _to_bytes32(value: HexOrBytes, field_name: str) -> bytes:
    raw = _to_bytes(value)
    if len(raw) != 32:
        raise RecordParseError(f"{field_name}: expected 32 bytes, got {len(raw)}")
    return raw


def _keccak_hex(data: bytes) -> str:
    return "0x" + bytes(Web3.keccak(data)).hex()


def hash_operation(target: str, value: int, data: HexOrBytes,
                   predecessor: HexOrBytes, salt: HexOrBytes) -> str:
    """Id of a single-call operation as computed by hashOperation"""
    encoded = abi_encode(SINGLE_OPERATION_TYPES, [
        Web3.to_checksum_address(target),
        int(value),
        _to_bytes(data),
        _to_bytes32(predecessor, 'predecessor'),
        _to_bytes32(salt, 'salt'),
    ])
    return _keccak_hex(encoded)


def hash_operation_batch(targets: Sequence[str], values: Sequence[int],
                         payloads: Sequence[HexOrBytes],
                         predecessor: HexOrBytes, salt: HexOrBytes) -> str:
    """Id of a batch operation as computed by hashOperationBatch"""
    encoded = abi_encode(BATCH_OPERATION_TYPES, [
        [Web3.to_checksum_address(t) for t in targets],
        [int(v) for v in values],
        [_to_bytes(p) for p in payloads],
        _to_bytes32(predecessor, 'predecessor'),
        _to_bytes32(salt, 'salt'),
    ])
    return _keccak_hex(encoded)


def compute_operation_id(operation: Operation) -> str:
    if operation.target is not None:
        return hash_operation(operation.target, operation.value or 0, operation.payload or "0x",
                              operation.predecessor, operation.salt)

    calls = operation.effective_calls()
    return hash_operation_batch(
        [c.target for c in calls],
        [c.value for c in calls],
        [c.payload for c in calls],
        operation.predecessor,
        operation.salt,
    )


def verify_operation_id(operation: Operation) -> bool:
    """True when the operation's reported id matches its recomputed hash"""
    computed = compute_operation_id(operation)
    if computed != operation.id.lower():
        logger.warning(f"Operation id mismatch: reported {operation.id}, computed {computed}")
        return False
    return True
