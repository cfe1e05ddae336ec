"""
Role Ledger - event-sourced AccessControl membership.

Replays RoleGranted / RoleRevoked events for a role into its current member
set and an audit history:

1. Keep only events for the requested role
2. Sort by (block_number, transaction_index, log_index); missing indices sort
   as -1 and input order breaks remaining ties
3. Grant sets membership, revoke clears it; repeating either is a no-op
4. History is reported newest-first, each entry flagged with whether it
   changed membership

A record whose account is not a valid address is skipped and reported as a
MALFORMED_EVENT_RECORD warning; the rest of the replay continues.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union
import logging

from ..decoders.interfaces import is_valid_address, normalize_address
from ..operations.models import to_int
from ...config.engine_config import ROLE_NAMES, TIMELOCK_ROLES
from ...exceptions import RecordParseError
from ...logging_config import log_anomaly

logger = logging.getLogger(__name__)


# ============================================================================
# DATA CLASSES
# ============================================================================

class LedgerWarningKind(Enum):
    MALFORMED_EVENT_RECORD = "MALFORMED_EVENT_RECORD"


@dataclass(frozen=True)
class LedgerWarning:
    kind: LedgerWarningKind
    message: str
    transaction_hash: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'message': self.message,
            'transaction_hash': self.transaction_hash,
        }


@dataclass(frozen=True)
class RoleAssignmentEvent:
    """One RoleGranted (granted=True) or RoleRevoked (granted=False) event"""
    role_id: str
    account: str
    granted: bool
    block_number: int
    timestamp: int
    transaction_hash: str
    sender: Optional[str] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleAssignmentEvent':
        """
        Build from an indexer record.

        Accepts the subgraph RoleAssignment shape (role as id string or
        {"id": ...}, txHash, blockNumber as string) and snake_case keys.
        The account is normalized but not validated here; replay decides
        what to do with unusable accounts.
        """
        role = data.get('role_id', data.get('role'))
        if isinstance(role, dict):
            role = role.get('roleHash') or role.get('id')
        if not role:
            raise RecordParseError("Missing required field 'role'")

        account = data.get('account')
        if account is None:
            raise RecordParseError("Missing required field 'account'")

        granted = data.get('granted')
        if isinstance(granted, str) and granted.lower() in ('true', 'false'):
            granted = granted.lower() == 'true'
        if not isinstance(granted, bool):
            raise RecordParseError(f"granted: expected boolean, got {granted!r}")

        block_number = data.get('block_number', data.get('blockNumber'))
        if block_number is None:
            raise RecordParseError("Missing required field 'blockNumber'")

        tx_index = data.get('transaction_index', data.get('transactionIndex'))
        log_index = data.get('log_index', data.get('logIndex'))
        sender = data.get('sender')

        return cls(
            role_id=str(role).lower(),
            account=normalize_address(account),
            granted=granted,
            block_number=to_int(block_number, 'blockNumber'),
            timestamp=to_int(data.get('timestamp', 0), 'timestamp'),
            transaction_hash=str(data.get('transaction_hash', data.get('txHash', ''))).lower(),
            sender=normalize_address(sender) if sender else None,
            transaction_index=to_int(tx_index, 'transactionIndex') if tx_index is not None else None,
            log_index=to_int(log_index, 'logIndex') if log_index is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            'role_id': self.role_id,
            'account': self.account,
            'granted': self.granted,
            'block_number': str(self.block_number),
            'timestamp': str(self.timestamp),
            'transaction_hash': self.transaction_hash,
            'sender': self.sender,
            'transaction_index': self.transaction_index,
            'log_index': self.log_index,
        }


@dataclass(frozen=True)
class HistoryEntry:
    """An event as shown in the audit trail"""
    event: RoleAssignmentEvent
    changed_membership: bool

    @property
    def redundant(self) -> bool:
        """Grant of an existing member or revoke of a non-member"""
        return not self.changed_membership

    def to_dict(self) -> dict:
        return {
            'event': self.event.to_dict(),
            'changed_membership': self.changed_membership,
            'redundant': self.redundant,
        }


@dataclass(frozen=True)
class Role:
    role_id: str
    name: str
    current_members: frozenset
    member_count: int

    def to_dict(self) -> dict:
        return {
            'role_id': self.role_id,
            'name': self.name,
            'current_members': sorted(self.current_members),
            'member_count': self.member_count,
        }


@dataclass(frozen=True)
class LedgerResult:
    role: Role
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)
    warnings: Tuple[LedgerWarning, ...] = field(default_factory=tuple)

    @property
    def current_members(self) -> frozenset:
        return self.role.current_members

    def to_dict(self) -> dict:
        return {
            'role': self.role.to_dict(),
            'history': [h.to_dict() for h in self.history],
            'warnings': [w.to_dict() for w in self.warnings],
        }


EventLike = Union[RoleAssignmentEvent, Dict[str, Any]]


# ============================================================================
# HELPERS
# ============================================================================

def role_name(role_id: str) -> str:
    """Human name of a role hash; unknown roles become CUSTOM_0x12345678"""
    role_id = str(role_id).lower()
    return ROLE_NAMES.get(role_id, f"CUSTOM_{role_id[:10]}")


def _record_role(record: Any) -> Optional[str]:
    """Role hash of a raw record, or None when it cannot be read"""
    if not isinstance(record, dict):
        return None
    role = record.get('role_id', record.get('role'))
    if isinstance(role, dict):
        role = role.get('roleHash') or role.get('id')
    return str(role).lower() if role else None


def parse_events(records: Iterable[EventLike],
                 role_id: Optional[str] = None) -> Tuple[List[RoleAssignmentEvent], List[LedgerWarning]]:
    """
    Coerce indexer records into events.

    Records that cannot be parsed are dropped and reported as warnings
    instead of aborting the whole batch. With `role_id`, only events of that
    role are returned, and a bad record is only reported when it belongs to
    that role or its role cannot be read.
    """
    role_id = str(role_id).lower() if role_id is not None else None
    events = []
    warnings = []
    for record in records:
        if isinstance(record, RoleAssignmentEvent):
            if role_id is None or record.role_id == role_id:
                events.append(record)
            continue
        record_role = _record_role(record)
        if role_id is not None and record_role is not None and record_role != role_id:
            continue
        try:
            events.append(RoleAssignmentEvent.from_dict(record))
        except (RecordParseError, AttributeError, TypeError) as e:
            tx_hash = record.get('txHash') if isinstance(record, dict) else None
            message = f"Skipping unparsable role event record: {e}"
            log_anomaly(logger, LedgerWarningKind.MALFORMED_EVENT_RECORD, message,
                        role=record_role, tx=tx_hash)
            warnings.append(LedgerWarning(LedgerWarningKind.MALFORMED_EVENT_RECORD, message, tx_hash))
    return events, warnings


def _position(value: Optional[int]) -> int:
    return -1 if value is None else value


def sort_events(events: Iterable[RoleAssignmentEvent]) -> List[RoleAssignmentEvent]:
    """Chronological order; sorted() is stable so equal keys keep input order"""
    return sorted(events, key=lambda e: (e.block_number, _position(e.transaction_index), _position(e.log_index)))


# ============================================================================
# REPLAY
# ============================================================================

def replay(role_id: str, events: Iterable[EventLike]) -> LedgerResult:
    """
    Replay the events of one role.

    Args:
        role_id: Role hash (case-insensitive)
        events: RoleAssignmentEvent objects or indexer dicts, any order, any roles

    Returns:
        LedgerResult with the role's current members, newest-first history
        and warnings for skipped records.
    """
    role_id = str(role_id).lower()
    parsed, warnings = parse_events(events, role_id)

    membership: Dict[str, bool] = {}
    entries: List[HistoryEntry] = []

    for event in sort_events(parsed):
        if not is_valid_address(event.account):
            message = (f"Skipping {role_name(role_id)} event with invalid account "
                       f"{event.account!r} (tx {event.transaction_hash or 'unknown'})")
            log_anomaly(logger, LedgerWarningKind.MALFORMED_EVENT_RECORD, message,
                        role=role_id, account=event.account, tx=event.transaction_hash or None)
            warnings.append(LedgerWarning(LedgerWarningKind.MALFORMED_EVENT_RECORD, message,
                                          event.transaction_hash or None))
            continue

        was_member = membership.get(event.account, False)
        membership[event.account] = event.granted
        entries.append(HistoryEntry(event=event, changed_membership=was_member != event.granted))

    members = frozenset(account for account, held in membership.items() if held)
    role = Role(role_id=role_id, name=role_name(role_id), current_members=members, member_count=len(members))

    logger.debug(f"Replayed {len(entries)} event(s) for {role.name}: {role.member_count} member(s)")
    return LedgerResult(role=role, history=tuple(reversed(entries)), warnings=tuple(warnings))


def compute_members(role_id: str, events: Iterable[EventLike]) -> Set[str]:
    """Current members of a role (lowercase addresses)"""
    return set(replay(role_id, events).role.current_members)


def history(role_id: str, events: Iterable[EventLike]) -> List[HistoryEntry]:
    """Audit trail of a role, newest first"""
    return list(replay(role_id, events).history)


def has_role(role_id: str, account: str, events: Iterable[EventLike]) -> bool:
    if not is_valid_address(account):
        return False
    return normalize_address(account) in replay(role_id, events).role.current_members


def summarize_roles(events: Iterable[EventLike]) -> List[Role]:
    """
    One Role per standard TimelockController role, followed by any custom
    role seen in the events (in order of first appearance).
    """
    parsed, _ = parse_events(events)

    role_ids = list(TIMELOCK_ROLES.values())
    for event in parsed:
        if event.role_id not in role_ids:
            role_ids.append(event.role_id)

    return [replay(role_id, parsed).role for role_id in role_ids]


def roles_for_account(account: str, events: Iterable[EventLike]) -> List[str]:
    """Names of the roles an account currently holds"""
    if not is_valid_address(account):
        return []
    account = normalize_address(account)
    return [role.name for role in summarize_roles(events) if account in role.current_members]
