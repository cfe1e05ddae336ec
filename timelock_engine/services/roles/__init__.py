"""
AccessControl role membership derived from RoleGranted / RoleRevoked events.
"""

from .ledger import (
    LedgerWarningKind,
    LedgerWarning,
    RoleAssignmentEvent,
    HistoryEntry,
    Role,
    LedgerResult,
    role_name,
    parse_events,
    sort_events,
    replay,
    compute_members,
    history,
    has_role,
    summarize_roles,
    roles_for_account,
)

__all__ = [
    'LedgerWarningKind',
    'LedgerWarning',
    'RoleAssignmentEvent',
    'HistoryEntry',
    'Role',
    'LedgerResult',
    'role_name',
    'parse_events',
    'sort_events',
    'replay',
    'compute_members',
    'history',
    'has_role',
    'summarize_roles',
    'roles_for_account',
]
