"""
Operation status calculation.

Status transition: PENDING -> READY -> EXECUTED | CANCELLED

Rules are checked in strict priority order (first match wins):
1. CANCELLED - cancelled_at_timestamp is set (overrides everything)
2. EXECUTED  - executed_at_timestamp is set
3. READY     - now >= ready_at
4. PENDING   - otherwise, with remaining_seconds = ready_at - now
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple
import logging

from .models import Operation
from ...config.engine_config import READY_AT_SENTINELS
from ...logging_config import log_anomaly

logger = logging.getLogger(__name__)


class OperationStatus(Enum):
    """Lifecycle state of a timelock operation"""
    PENDING = "PENDING"
    READY = "READY"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"


class StatusWarningKind(Enum):
    INCONSISTENT_OPERATION_STATE = "INCONSISTENT_OPERATION_STATE"


@dataclass(frozen=True)
class StatusWarning:
    kind: StatusWarningKind
    message: str

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'message': self.message}


@dataclass(frozen=True)
class StatusResult:
    """
    Computed status of an operation at a given time.

    remaining_seconds is the countdown for PENDING, 0 for READY and None for
    the terminal states.
    """
    status: OperationStatus
    remaining_seconds: Optional[int]
    ready_at: int
    warnings: Tuple[StatusWarning, ...] = field(default_factory=tuple)

    @property
    def is_final(self) -> bool:
        return self.status in (OperationStatus.EXECUTED, OperationStatus.CANCELLED)

    @property
    def is_consistent(self) -> bool:
        return not self.warnings

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'remaining_seconds': self.remaining_seconds,
            'ready_at': str(self.ready_at),
            'warnings': [w.to_dict() for w in self.warnings],
        }


def resolve_ready_at(operation: Operation) -> int:
    """
    Timestamp at which the operation becomes executable.

    The contract-reported timestamp is used unless it is missing or one of the
    on-chain sentinels (0 = unset, 1 = done); then scheduled_at + delay.
    """
    reported = operation.ready_at_timestamp
    if reported is not None and reported not in READY_AT_SENTINELS:
        return reported
    return operation.scheduled_at_timestamp + operation.delay


def compute_status(operation: Operation, now: int) -> StatusResult:
    """
    Calculate operation status from operation data and the current timestamp.

    Args:
        operation: Operation record
        now: Current time in seconds (Unix epoch); pass it explicitly so the
             result is reproducible

    Returns:
        StatusResult. A record with both cancellation and execution recorded
        is reported CANCELLED with an INCONSISTENT_OPERATION_STATE warning.
    """
    now = int(now)
    ready_at = resolve_ready_at(operation)

    if operation.cancelled_at_timestamp is not None:
        warnings = ()
        if operation.executed_at_timestamp is not None:
            message = (f"Operation {operation.id} has both cancellation "
                       f"({operation.cancelled_at_timestamp}) and execution "
                       f"({operation.executed_at_timestamp}) recorded; reporting CANCELLED")
            log_anomaly(logger, StatusWarningKind.INCONSISTENT_OPERATION_STATE, message, operation=operation.id)
            warnings = (StatusWarning(StatusWarningKind.INCONSISTENT_OPERATION_STATE, message),)
        return StatusResult(OperationStatus.CANCELLED, None, ready_at, warnings)

    if operation.executed_at_timestamp is not None:
        return StatusResult(OperationStatus.EXECUTED, None, ready_at)

    if now >= ready_at:
        return StatusResult(OperationStatus.READY, 0, ready_at)

    return StatusResult(OperationStatus.PENDING, max(ready_at - now, 0), ready_at)


def calculate_operation_status(operation: Operation, now: int) -> OperationStatus:
    """Status only; see compute_status"""
    return compute_status(operation, now).status


def is_operation_final(operation: Operation) -> bool:
    """True once the operation is executed or cancelled"""
    return operation.executed_at_timestamp is not None or operation.cancelled_at_timestamp is not None


def is_operation_executable(operation: Operation, now: int) -> bool:
    return compute_status(operation, now).status == OperationStatus.READY


def seconds_until_ready(operation: Operation, now: int) -> Optional[int]:
    """Seconds remaining (0 if ready), None once final"""
    if is_operation_final(operation):
        return None
    return max(resolve_ready_at(operation) - int(now), 0)


def operation_progress(operation: Operation, now: int) -> int:
    """Percentage (0-100) of the delay elapsed since scheduling"""
    if is_operation_final(operation):
        return 100

    ready_at = resolve_ready_at(operation)
    total_delay = ready_at - operation.scheduled_at_timestamp
    if total_delay <= 0:
        return 100

    elapsed = int(now) - operation.scheduled_at_timestamp
    progress = (elapsed * 100) // total_delay
    return max(0, min(100, progress))
