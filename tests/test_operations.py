"""
Unit tests for operation records, status calculation and id hashing.

Tests:
- Status priority (Cancelled > Executed > Ready > Pending)
- Ready-at sentinels 0 / 1 fall back to scheduled_at + delay
- Monotonic progression over time
- Inconsistent cancelled + executed records
- Parsing indexer records
- hashOperation / hashOperationBatch re-verification
"""
import json
import sys
import os

import pytest
from eth_abi import encode
from web3 import Web3

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timelock_engine.exceptions import RecordParseError
from timelock_engine.services.operations import (
    Call,
    Operation,
    OperationStatus,
    StatusWarningKind,
    compute_status,
    calculate_operation_status,
    resolve_ready_at,
    is_operation_final,
    is_operation_executable,
    seconds_until_ready,
    operation_progress,
    hash_operation,
    hash_operation_batch,
    verify_operation_id,
    to_int,
)

ZERO32 = "0x" + "00" * 32
SALT = "0x" + "01" * 32
TARGET = "0x" + "33" * 20


def make_operation(**overrides):
    fields = dict(
        id="0x" + "aa" * 32,
        predecessor=ZERO32,
        salt=ZERO32,
        delay=3600,
        scheduled_at_timestamp=1000,
        scheduled_by="0x" + "44" * 20,
        target=TARGET,
        value=0,
        payload="0x",
    )
    fields.update(overrides)
    return Operation(**fields)


STATUS_ORDER = [OperationStatus.PENDING, OperationStatus.READY, OperationStatus.EXECUTED]


class TestStatusCalculation:
    """Priority-ordered status rules."""

    def test_ready_at_boundary(self):
        """scheduledAt=1000, delay=3600, now=4600 is Ready."""
        result = compute_status(make_operation(), now=4600)

        assert result.status == OperationStatus.READY
        assert result.remaining_seconds == 0
        assert result.ready_at == 4600

    def test_pending_countdown(self):
        result = compute_status(make_operation(), now=4000)

        assert result.status == OperationStatus.PENDING
        assert result.remaining_seconds == 600

    def test_executed(self):
        op = make_operation().record_execution(5000, "0x" + "55" * 20)
        result = compute_status(op, now=6000)

        assert result.status == OperationStatus.EXECUTED
        assert result.remaining_seconds is None
        assert result.is_final

    def test_cancelled_regardless_of_time(self):
        """Cancellation wins before, at and after readiness."""
        op = make_operation().record_cancellation(2000)

        for now in (0, 1500, 4600, 10 ** 10):
            assert calculate_operation_status(op, now) == OperationStatus.CANCELLED

    def test_cancelled_and_executed_is_flagged(self):
        """Co-present terminal timestamps report Cancelled with a warning."""
        op = make_operation(executed_at_timestamp=5000, cancelled_at_timestamp=4000)
        result = compute_status(op, now=6000)

        assert result.status == OperationStatus.CANCELLED
        assert not result.is_consistent
        assert result.warnings[0].kind == StatusWarningKind.INCONSISTENT_OPERATION_STATE

    def test_monotonic_without_terminal_events(self):
        """Status never moves backwards as time advances."""
        op = make_operation()
        previous = 0
        for now in range(0, 8000, 250):
            current = STATUS_ORDER.index(calculate_operation_status(op, now))
            assert current >= previous
            previous = current

    def test_to_dict_is_json_serializable(self):
        result = compute_status(make_operation(), now=4000)

        data = json.loads(json.dumps(result.to_dict()))
        assert data['status'] == "PENDING"
        assert data['ready_at'] == "4600"


class TestReadyAt:
    """Contract-reported ready-at timestamps and sentinels."""

    @pytest.mark.parametrize("reported", [None, 0, 1])
    def test_sentinels_fall_back_to_delay(self, reported):
        op = make_operation(ready_at_timestamp=reported)

        assert resolve_ready_at(op) == 4600
        assert compute_status(op, now=1050).status == OperationStatus.PENDING

    def test_reported_timestamp_is_used(self):
        op = make_operation(ready_at_timestamp=5000)

        assert resolve_ready_at(op) == 5000
        assert compute_status(op, now=4600).status == OperationStatus.PENDING
        assert compute_status(op, now=5000).status == OperationStatus.READY

    def test_zero_delay_is_ready_immediately(self):
        op = make_operation(delay=0)

        assert compute_status(op, now=1000).status == OperationStatus.READY
        assert operation_progress(op, now=1000) == 100


class TestStatusHelpers:

    def test_seconds_until_ready(self):
        op = make_operation()

        assert seconds_until_ready(op, 1000) == 3600
        assert seconds_until_ready(op, 9999) == 0
        assert seconds_until_ready(op.record_execution(5000), 9999) is None

    def test_executable_only_when_ready(self):
        op = make_operation()

        assert not is_operation_executable(op, 1000)
        assert is_operation_executable(op, 4600)
        assert not is_operation_executable(op.record_execution(4700), 4800)

    def test_progress(self):
        op = make_operation()

        assert operation_progress(op, 1000) == 0
        assert operation_progress(op, 2800) == 50
        assert operation_progress(op, 999999) == 100
        assert is_operation_final(op.record_cancellation(1200))
        assert operation_progress(op.record_cancellation(1200), 1200) == 100


class TestOperationRecords:
    """Records built from indexer data."""

    SUBGRAPH_RECORD = {
        "id": "0x" + "AA" * 32,
        "target": "0x" + "AB" * 20,
        "value": "1000000000000000000",
        "data": "0xA9059CBB",
        "predecessor": ZERO32,
        "salt": SALT,
        "delay": "3600",
        "timestamp": "1",
        "scheduledAt": "1000",
        "scheduledBy": "0x" + "44" * 20,
        "executedAt": None,
        "cancelledAt": None,
    }

    def test_from_subgraph_record(self):
        op = Operation.from_dict(self.SUBGRAPH_RECORD)

        assert op.id == "0x" + "aa" * 32
        assert op.target == "0x" + "ab" * 20
        assert op.value == 10 ** 18
        assert op.payload == "0xa9059cbb"
        assert op.ready_at_timestamp == 1
        assert op.scheduled_at_timestamp == 1000
        assert not op.is_executed
        assert compute_status(op, now=4600).status == OperationStatus.READY

    def test_round_trip_through_to_dict(self):
        op = Operation.from_dict(self.SUBGRAPH_RECORD)

        assert Operation.from_dict(op.to_dict()) == op

    def test_missing_required_field(self):
        record = dict(self.SUBGRAPH_RECORD)
        del record["delay"]

        with pytest.raises(RecordParseError):
            Operation.from_dict(record)

    def test_batch_record(self):
        record = dict(self.SUBGRAPH_RECORD, target=None, value=None, data=None, calls=[
            {"index": "1", "target": TARGET, "value": "0", "data": "0x"},
            {"index": "0", "target": TARGET, "value": "5", "data": "0x01"},
        ])
        op = Operation.from_dict(record)

        assert op.is_batch
        assert [c.index for c in op.effective_calls()] == [0, 1]

    def test_execution_recorded_once(self):
        op = make_operation().record_execution(5000)

        with pytest.raises(ValueError):
            op.record_execution(5001)

    def test_cancellation_recorded_once(self):
        op = make_operation().record_cancellation(2000)

        with pytest.raises(ValueError):
            op.record_cancellation(2001)

    @pytest.mark.parametrize("value,expected", [(5, 5), ("5", 5), ("0x10", 16), (" 7 ", 7)])
    def test_to_int(self, value, expected):
        assert to_int(value) == expected

    @pytest.mark.parametrize("value", [True, "abc", 1.5, None])
    def test_to_int_rejects(self, value):
        with pytest.raises(RecordParseError):
            to_int(value)


class TestOperationHashing:
    """Client-side re-verification of operation ids."""

    def test_single_matches_manual_encoding(self):
        payload = bytes.fromhex("a9059cbb")
        expected = "0x" + bytes(Web3.keccak(encode(
            ['address', 'uint256', 'bytes', 'bytes32', 'bytes32'],
            [TARGET, 7, payload, bytes(32), bytes.fromhex("01" * 32)],
        ))).hex()

        assert hash_operation(TARGET, 7, "0xa9059cbb", ZERO32, SALT) == expected

    def test_verify_single_operation(self):
        op_id = hash_operation(TARGET, 0, "0x", ZERO32, SALT)
        op = make_operation(id=op_id, salt=SALT)

        assert verify_operation_id(op)
        assert not verify_operation_id(make_operation(id=op_id, salt=ZERO32))

    def test_verify_batch_operation(self):
        calls = (
            Call(index=0, target=TARGET, value=0, payload="0xa9059cbb"),
            Call(index=1, target="0x" + "44" * 20, value=10 ** 18, payload="0x"),
        )
        op_id = hash_operation_batch([c.target for c in calls], [c.value for c in calls],
                                     [c.payload for c in calls], ZERO32, SALT)
        op = make_operation(id=op_id, salt=SALT, target=None, value=None, payload=None, calls=calls)

        assert verify_operation_id(op)

    def test_batch_differs_from_single(self):
        single = hash_operation(TARGET, 0, "0x", ZERO32, ZERO32)
        batch = hash_operation_batch([TARGET], [0], ["0x"], ZERO32, ZERO32)

        assert single != batch

    def test_bad_salt_length(self):
        with pytest.raises(RecordParseError):
            hash_operation(TARGET, 0, "0x", ZERO32, "0x01")
