"""
TimelockController operations: records, status calculation and id hashing.
"""

from .models import Call, Operation, to_int
from .status import (
    OperationStatus,
    StatusWarningKind,
    StatusWarning,
    StatusResult,
    compute_status,
    calculate_operation_status,
    resolve_ready_at,
    is_operation_final,
    is_operation_executable,
    seconds_until_ready,
    operation_progress,
)
from .hashing import (
    hash_operation,
    hash_operation_batch,
    compute_operation_id,
    verify_operation_id,
)

__all__ = [
    'Call',
    'Operation',
    'to_int',
    'OperationStatus',
    'StatusWarningKind',
    'StatusWarning',
    'StatusResult',
    'compute_status',
    'calculate_operation_status',
    'resolve_ready_at',
    'is_operation_final',
    'is_operation_executable',
    'seconds_until_ready',
    'operation_progress',
    'hash_operation',
    'hash_operation_batch',
    'compute_operation_id',
    'verify_operation_id',
]
