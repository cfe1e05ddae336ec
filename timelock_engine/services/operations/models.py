"""
Operation and Call records for TimelockController.

Records are built from whatever the data service returns (subgraph JSON with
string integers and camelCase keys, or plain snake_case dicts). Scheduled
facts never change; the execution and cancellation fields are each set at
most once through record_execution / record_cancellation.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from ..decoders.base import normalize_hex
from ..decoders.interfaces import normalize_address
from ...config.engine_config import ZERO_BYTES32
from ...exceptions import RecordParseError


def to_int(value: Any, field_name: str = "value") -> int:
    """Parse ints delivered as int, decimal string or 0x hex string"""
    if isinstance(value, bool):
        raise RecordParseError(f"{field_name}: expected integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text[:2].lower() == "0x":
                return int(text, 16)
            return int(text)
        except ValueError:
            raise RecordParseError(f"{field_name}: cannot parse integer from {value!r}") from None
    raise RecordParseError(f"{field_name}: expected integer, got {type(value).__name__}")


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return to_int(value, field_name)


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _required(data: Dict[str, Any], *keys: str) -> Any:
    value = _first(data, *keys)
    if value is None:
        raise RecordParseError(f"Missing required field '{keys[0]}'")
    return value


def _optional_address(value: Optional[str]) -> Optional[str]:
    return normalize_address(value) if value else None


@dataclass(frozen=True)
class Call:
    """One leg of a (possibly batched) operation"""
    index: int
    target: str
    value: int
    payload: str
    signature: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Call':
        return cls(
            index=to_int(_first(data, 'index', default=0), 'index'),
            target=normalize_address(_required(data, 'target')),
            value=to_int(_first(data, 'value', default=0), 'value'),
            payload=normalize_hex(_first(data, 'payload', 'data', default="0x")),
            signature=_first(data, 'signature'),
        )

    def to_dict(self) -> dict:
        return {
            'index': self.index,
            'target': self.target,
            'value': str(self.value),
            'payload': self.payload,
            'signature': self.signature,
        }


@dataclass(frozen=True)
class Operation:
    """
    A scheduled TimelockController operation.

    `target`, `value` and `payload` are set for single-call operations
    (schedule) and None for batches (scheduleBatch), whose legs live in
    `calls`. `ready_at_timestamp` is the contract-reported timestamp and may
    be missing or hold the on-chain sentinels 0 / 1.
    """
    id: str
    predecessor: str
    salt: str
    delay: int
    scheduled_at_timestamp: int
    scheduled_by: Optional[str]
    ready_at_timestamp: Optional[int] = None
    target: Optional[str] = None
    value: Optional[int] = None
    payload: Optional[str] = None
    executed_at_timestamp: Optional[int] = None
    executed_by: Optional[str] = None
    cancelled_at_timestamp: Optional[int] = None
    cancelled_by: Optional[str] = None
    calls: Tuple[Call, ...] = field(default_factory=tuple)
    timelock_controller: Optional[str] = None
    scheduled_tx: Optional[str] = None
    executed_tx: Optional[str] = None
    cancelled_tx: Optional[str] = None

    @property
    def is_batch(self) -> bool:
        return self.target is None and len(self.calls) > 0

    @property
    def is_executed(self) -> bool:
        return self.executed_at_timestamp is not None

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at_timestamp is not None

    def effective_calls(self) -> List[Call]:
        """Calls in index order; single-call operations yield one synthesized call"""
        if self.calls:
            return sorted(self.calls, key=lambda c: c.index)
        if self.target is None:
            return []
        return [Call(index=0, target=self.target, value=self.value or 0, payload=self.payload or "0x")]

    def record_execution(self, timestamp: int, executed_by: Optional[str] = None,
                         tx_hash: Optional[str] = None) -> 'Operation':
        """Copy with the execution recorded; raises if execution was already recorded"""
        if self.executed_at_timestamp is not None:
            raise ValueError(f"Operation {self.id} already has an execution recorded")
        return replace(self, executed_at_timestamp=int(timestamp),
                       executed_by=_optional_address(executed_by), executed_tx=tx_hash)

    def record_cancellation(self, timestamp: int, cancelled_by: Optional[str] = None,
                            tx_hash: Optional[str] = None) -> 'Operation':
        """Copy with the cancellation recorded; raises if cancellation was already recorded"""
        if self.cancelled_at_timestamp is not None:
            raise ValueError(f"Operation {self.id} already has a cancellation recorded")
        return replace(self, cancelled_at_timestamp=int(timestamp),
                       cancelled_by=_optional_address(cancelled_by), cancelled_tx=tx_hash)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Operation':
        """
        Build from a data-service record.

        Accepts subgraph field names (data, timestamp, scheduledAt, executedAt,
        ...) as well as the snake_case attribute names.
        """
        calls = tuple(Call.from_dict(c) for c in _first(data, 'calls', default=[]) or [])
        target = _first(data, 'target')
        payload = _first(data, 'payload', 'data')
        value = _first(data, 'value')

        return cls(
            id=str(_required(data, 'id')).lower(),
            predecessor=str(_first(data, 'predecessor', default=ZERO_BYTES32)).lower(),
            salt=str(_first(data, 'salt', default=ZERO_BYTES32)).lower(),
            delay=to_int(_required(data, 'delay'), 'delay'),
            scheduled_at_timestamp=to_int(
                _required(data, 'scheduled_at_timestamp', 'scheduledAt'), 'scheduledAt'),
            scheduled_by=_optional_address(_first(data, 'scheduled_by', 'scheduledBy')),
            ready_at_timestamp=_optional_int(
                _first(data, 'ready_at_timestamp', 'readyAt', 'timestamp'), 'timestamp'),
            target=_optional_address(target),
            value=_optional_int(value, 'value'),
            payload=normalize_hex(payload) if payload is not None else None,
            executed_at_timestamp=_optional_int(
                _first(data, 'executed_at_timestamp', 'executedAt'), 'executedAt'),
            executed_by=_optional_address(_first(data, 'executed_by', 'executedBy')),
            cancelled_at_timestamp=_optional_int(
                _first(data, 'cancelled_at_timestamp', 'cancelledAt'), 'cancelledAt'),
            cancelled_by=_optional_address(_first(data, 'cancelled_by', 'cancelledBy')),
            calls=calls,
            timelock_controller=_optional_address(_first(data, 'timelock_controller', 'timelockController')),
            scheduled_tx=_first(data, 'scheduled_tx', 'scheduledTx'),
            executed_tx=_first(data, 'executed_tx', 'executedTx'),
            cancelled_tx=_first(data, 'cancelled_tx', 'cancelledTx'),
        )

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dictionary (integers as strings)."""
        def _s(v):
            return str(v) if v is not None else None

        return {
            'id': self.id,
            'target': self.target,
            'value': _s(self.value),
            'payload': self.payload,
            'predecessor': self.predecessor,
            'salt': self.salt,
            'delay': str(self.delay),
            'ready_at_timestamp': _s(self.ready_at_timestamp),
            'scheduled_at_timestamp': str(self.scheduled_at_timestamp),
            'scheduled_by': self.scheduled_by,
            'executed_at_timestamp': _s(self.executed_at_timestamp),
            'executed_by': self.executed_by,
            'cancelled_at_timestamp': _s(self.cancelled_at_timestamp),
            'cancelled_by': self.cancelled_by,
            'calls': [c.to_dict() for c in self.calls],
            'timelock_controller': self.timelock_controller,
            'scheduled_tx': self.scheduled_tx,
            'executed_tx': self.executed_tx,
            'cancelled_tx': self.cancelled_tx,
        }
