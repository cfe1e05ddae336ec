"""
Unit tests for the event-sourced role ledger.

Tests:
- Grant / revoke replay and the current member set
- Order independence once events are sorted
- Redundant grants and revokes in the audit history
- Malformed records are skipped with a warning
- Role names and summaries
"""
import random
import json
import sys
import os

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timelock_engine.config.engine_config import PROPOSER_ROLE, EXECUTOR_ROLE, DEFAULT_ADMIN_ROLE
from timelock_engine.exceptions import RecordParseError
from timelock_engine.services.roles import (
    LedgerWarningKind,
    RoleAssignmentEvent,
    compute_members,
    history,
    replay,
    has_role,
    role_name,
    parse_events,
    sort_events,
    summarize_roles,
    roles_for_account,
)

P = "0x" + "a1" * 20
Q = "0x" + "b2" * 20
CUSTOM_ROLE = "0x" + "12345678" + "00" * 28


def event(account, granted, block, role=PROPOSER_ROLE, tx_index=None, log_index=None):
    return RoleAssignmentEvent(
        role_id=role,
        account=account,
        granted=granted,
        block_number=block,
        timestamp=block * 12,
        transaction_hash="0x" + format(block, "064x"),
        sender="0x" + "99" * 20,
        transaction_index=tx_index,
        log_index=log_index,
    )


def grant_grant_revoke():
    return [event(P, True, 100), event(Q, True, 101), event(P, False, 102)]


class TestReplay:
    """Current membership from grant / revoke events."""

    def test_grant_grant_revoke(self):
        """grant P, grant Q, revoke P leaves {Q}."""
        result = replay(PROPOSER_ROLE, grant_grant_revoke())

        assert result.current_members == frozenset({Q})
        assert result.role.member_count == 1
        assert result.role.name == "PROPOSER"
        assert result.warnings == ()

    def test_shuffled_input_same_result(self):
        """Sorting by block makes delivery order irrelevant."""
        events = grant_grant_revoke()
        expected = compute_members(PROPOSER_ROLE, events)

        rng = random.Random(7)
        for _ in range(10):
            shuffled = list(events)
            rng.shuffle(shuffled)
            assert compute_members(PROPOSER_ROLE, shuffled) == expected

    def test_other_roles_ignored(self):
        events = grant_grant_revoke() + [event(P, True, 103, role=EXECUTOR_ROLE)]

        assert compute_members(PROPOSER_ROLE, events) == {Q}
        assert compute_members(EXECUTOR_ROLE, events) == {P}

    def test_role_id_case_insensitive(self):
        events = [event(P, True, 100, role=CUSTOM_ROLE)]

        assert compute_members(CUSTOM_ROLE.upper().replace("0X", "0x"), events) == {P}

    def test_duplicate_grant_is_noop(self):
        events = [event(P, True, 100), event(P, True, 101)]

        assert compute_members(PROPOSER_ROLE, events) == {P}

    def test_same_block_uses_indices(self):
        """Within one block, transaction and log indices decide order."""
        events = [
            event(P, False, 100, tx_index=2, log_index=0),
            event(P, True, 100, tx_index=1, log_index=5),
        ]

        assert compute_members(PROPOSER_ROLE, events) == set()

    def test_ties_keep_input_order(self):
        events = [event(P, True, 100), event(P, False, 100)]

        assert compute_members(PROPOSER_ROLE, events) == set()
        assert compute_members(PROPOSER_ROLE, list(reversed(events))) == {P}

    def test_missing_indices_sort_first(self):
        indexed = event(P, True, 100, tx_index=0, log_index=0)
        bare = event(Q, True, 100)

        assert sort_events([indexed, bare]) == [bare, indexed]

    def test_empty_events(self):
        result = replay(PROPOSER_ROLE, [])

        assert result.current_members == frozenset()
        assert result.history == ()


class TestHistory:
    """Newest-first audit trail."""

    def test_newest_first(self):
        entries = history(PROPOSER_ROLE, grant_grant_revoke())

        assert [e.event.block_number for e in entries] == [102, 101, 100]
        assert all(e.changed_membership for e in entries)

    def test_redundant_events_are_flagged(self):
        events = [
            event(P, True, 100),
            event(P, True, 101),
            event(Q, False, 102),
        ]
        entries = history(PROPOSER_ROLE, events)

        assert [(e.event.block_number, e.redundant) for e in entries] == [
            (102, True),
            (101, True),
            (100, False),
        ]

    def test_to_dict_is_json_serializable(self):
        result = replay(PROPOSER_ROLE, grant_grant_revoke())

        data = json.loads(json.dumps(result.to_dict()))
        assert data['role']['current_members'] == [Q]
        assert data['history'][0]['event']['block_number'] == "102"


class TestMalformedRecords:
    """Bad records are skipped, never fatal."""

    def test_invalid_account_skipped(self):
        events = grant_grant_revoke() + [event("0xnot-an-address", True, 101)]
        result = replay(PROPOSER_ROLE, events)

        assert result.current_members == frozenset({Q})
        assert len(result.history) == 3
        assert len(result.warnings) == 1
        assert result.warnings[0].kind == LedgerWarningKind.MALFORMED_EVENT_RECORD

    def test_unparsable_dict_skipped(self):
        records = [
            {"role": {"id": PROPOSER_ROLE}, "account": P, "granted": True,
             "blockNumber": "100", "timestamp": "1200", "txHash": "0x01"},
            {"role": PROPOSER_ROLE, "account": Q, "granted": True, "txHash": "0x02"},
        ]
        result = replay(PROPOSER_ROLE, records)

        assert result.current_members == frozenset({P})
        assert result.warnings[0].kind == LedgerWarningKind.MALFORMED_EVENT_RECORD
        assert result.warnings[0].transaction_hash == "0x02"

    def test_from_dict_subgraph_shape(self):
        parsed = RoleAssignmentEvent.from_dict({
            "role": {"id": PROPOSER_ROLE.upper().replace("0X", "0x")},
            "account": "0x" + "A1" * 20,
            "granted": False,
            "blockNumber": "12345",
            "timestamp": "1700000000",
            "txHash": "0xABC",
            "sender": "0x" + "99" * 20,
        })

        assert parsed.role_id == PROPOSER_ROLE
        assert parsed.account == P
        assert parsed.block_number == 12345
        assert parsed.transaction_hash == "0xabc"
        assert parsed.granted is False

    def test_from_dict_rejects_non_boolean_granted(self):
        with pytest.raises(RecordParseError):
            RoleAssignmentEvent.from_dict({"role": PROPOSER_ROLE, "account": P,
                                           "granted": "maybe", "blockNumber": 1})


class TestRoleSummaries:
    """Role names and per-account views."""

    def test_role_names(self):
        assert role_name(DEFAULT_ADMIN_ROLE) == "DEFAULT_ADMIN"
        assert role_name(PROPOSER_ROLE) == "PROPOSER"
        assert role_name(CUSTOM_ROLE) == "CUSTOM_0x12345678"

    def test_summarize_includes_standard_and_custom_roles(self):
        events = grant_grant_revoke() + [event(P, True, 200, role=CUSTOM_ROLE)]
        roles = summarize_roles(events)

        assert [r.name for r in roles] == [
            "DEFAULT_ADMIN", "PROPOSER", "EXECUTOR", "CANCELLER", "CUSTOM_0x12345678",
        ]
        by_name = {r.name: r for r in roles}
        assert by_name["PROPOSER"].member_count == 1
        assert by_name["EXECUTOR"].member_count == 0
        assert by_name["CUSTOM_0x12345678"].current_members == frozenset({P})

    def test_has_role(self):
        events = grant_grant_revoke()

        assert has_role(PROPOSER_ROLE, Q.upper().replace("0X", "0x"), events)
        assert not has_role(PROPOSER_ROLE, P, events)
        assert not has_role(PROPOSER_ROLE, "garbage", events)

    def test_roles_for_account(self):
        events = grant_grant_revoke() + [event(Q, True, 103, role=EXECUTOR_ROLE)]

        assert roles_for_account(Q, events) == ["PROPOSER", "EXECUTOR"]
        assert roles_for_account(P, events) == []


class TestWarningScope:
    """A role's replay only reports bad records that belong to it."""

    OTHER_ROLE = "0x" + "cc" * 32

    def test_unparsable_record_of_other_role_not_reported(self):
        records = [
            {"role": PROPOSER_ROLE, "account": P, "granted": True, "blockNumber": "100"},
            {"role": self.OTHER_ROLE, "granted": True, "blockNumber": "101", "txHash": "0x02"},
        ]

        assert replay(PROPOSER_ROLE, records).warnings == ()
        other = replay(self.OTHER_ROLE, records)
        assert [w.transaction_hash for w in other.warnings] == ["0x02"]

    def test_invalid_account_of_other_role_not_reported(self):
        events = grant_grant_revoke() + [event("0xbad", True, 101, role=EXECUTOR_ROLE)]

        assert replay(PROPOSER_ROLE, events).warnings == ()
        assert len(replay(EXECUTOR_ROLE, events).warnings) == 1

    def test_record_without_readable_role_reported_everywhere(self):
        records = [{"account": P, "granted": True, "blockNumber": "100", "txHash": "0x03"}]

        for role in (PROPOSER_ROLE, self.OTHER_ROLE):
            warnings = replay(role, records).warnings
            assert [w.kind for w in warnings] == [LedgerWarningKind.MALFORMED_EVENT_RECORD]

    def test_parse_events_role_filter(self):
        events = grant_grant_revoke() + [event(P, True, 103, role=EXECUTOR_ROLE)]
        parsed, warnings = parse_events(events, EXECUTOR_ROLE.upper())

        assert [e.block_number for e in parsed] == [103]
        assert warnings == []
