"""
Recursive Calldata Decoder

Decodes raw call data against an interface registry snapshot:
1. Look up the interface entry for the call target
2. Match the 4-byte selector against the entry's function descriptors
3. Decode the arguments with eth_abi
4. For TimelockController wrappers (execute / executeBatch / schedule /
   scheduleBatch) decode every inner (target, payload) the same way

Missing or low-trust interfaces never raise: the result degrades to an
"unknown" node carrying warnings. Only calldata without a selector is an
error, since it means the caller passed something that is not a call.
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union, TYPE_CHECKING
import logging

from eth_abi import decode as abi_decode

from .base import (
    DecodedCall,
    DecodedParam,
    DecoderWarning,
    DecoderWarningKind,
    TokenMetadata,
    UNKNOWN_FUNCTION,
)
from .formatter import format_amount
from .interfaces import (
    FunctionDescriptor,
    InterfaceEntry,
    InterfaceRegistry,
    normalize_address,
    split_top_level,
)
from ...config.engine_config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    MAX_BATCH_CALLS,
    SINGLE_CALL_WRAPPERS,
    BATCH_CALL_WRAPPERS,
    TOKEN_AMOUNT_SIGNATURES,
    NATIVE_DECIMALS,
    NATIVE_SYMBOL,
)
from ...exceptions import CalldataDecodeError, InterfaceParseError
from ...logging_config import log_anomaly

if TYPE_CHECKING:
    from ..operations.models import Operation

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")

SINGLE_WRAPPER_TYPES = ['address', 'uint256', 'bytes']
BATCH_WRAPPER_TYPES = ['address[]', 'uint256[]', 'bytes[]']

Calldata = Union[bytes, bytearray, str]


class _NodeBudget:
    """Caps the number of nodes built for one decode request"""

    def __init__(self, limit: int):
        self.remaining = max(int(limit), 1)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def take(self):
        self.remaining -= 1


# ============================================================================
# PUBLIC API
# ============================================================================

def decode_calldata(
    target: Optional[str],
    calldata: Calldata,
    registry: InterfaceRegistry,
    max_depth: int = DEFAULT_MAX_DEPTH,
    intended_signature: Optional[str] = None,
    token_metadata: Optional[Mapping[str, TokenMetadata]] = None,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> DecodedCall:
    """
    Decode call data into a DecodedCall tree.

    Args:
        target: Address the call data is sent to (used for interface lookup)
        calldata: Raw call bytes or 0x-prefixed hex string
        registry: Interface registry snapshot; read only
        max_depth: Levels of wrapper nesting to decode, the root included
        intended_signature: Signature the caller expects, e.g.
            "transfer(address,uint256)"; resolves selector collisions
        token_metadata: Token address -> decimals/symbol for amount annotations
        max_nodes: Upper bound on the number of nodes in the tree

    Returns:
        Root DecodedCall. Unknown interfaces, depth limits and malformed
        batches are reported as warnings on the affected nodes.

    Raises:
        CalldataDecodeError: calldata is not hex or shorter than 4 bytes
    """
    data = calldata_to_bytes(calldata)
    if len(data) < 4:
        raise CalldataDecodeError(
            f"Calldata too short: expected at least 4 bytes selector (got {len(data)} bytes)"
        )

    tokens = {normalize_address(k): v for k, v in (token_metadata or {}).items()}
    budget = _NodeBudget(max_nodes)
    return _decode_node(target, data, registry, max_depth, intended_signature, tokens, budget)


# Short alias matching the engine's other entry points (compute_status, compute_members)
decode = decode_calldata


def decode_operation(
    operation: 'Operation',
    registry: InterfaceRegistry,
    **kwargs,
) -> List[Optional[DecodedCall]]:
    """
    Decode every call of an operation, in call index order.

    Each call's human signature (when the indexer supplied one) is used as the
    intended signature. Calls without a selector (plain value transfers) map
    to None.
    """
    results = []
    for call in operation.effective_calls():
        data = calldata_to_bytes(call.payload or "0x")
        if len(data) < 4:
            results.append(None)
            continue
        options = dict(kwargs)
        options.setdefault('intended_signature', call.signature)
        results.append(decode_calldata(call.target, data, registry, **options))
    return results


def calldata_to_bytes(calldata: Calldata) -> bytes:
    """Convert bytes or a 0x-prefixed hex string to bytes"""
    if isinstance(calldata, (bytes, bytearray)):
        return bytes(calldata)
    if not isinstance(calldata, str) or not _HEX_RE.match(calldata.strip()):
        raise CalldataDecodeError("Calldata must be a 0x-prefixed hex string")
    text = calldata.strip()[2:]
    if len(text) % 2:
        raise CalldataDecodeError("Calldata hex string has an odd number of digits")
    return bytes.fromhex(text)


def signature_types(signature: str) -> Optional[List[str]]:
    """Canonical parameter types of a text signature, or None if it cannot be parsed"""
    try:
        return FunctionDescriptor.from_text_signature(signature).input_types
    except InterfaceParseError as e:
        logger.debug(f"Ignoring unparsable intended signature {signature!r}: {e}")
        return None


# ============================================================================
# RECURSION
# ============================================================================

def _decode_node(
    target: Optional[str],
    data: bytes,
    registry: InterfaceRegistry,
    max_depth: int,
    intended_signature: Optional[str],
    tokens: Dict[str, TokenMetadata],
    budget: _NodeBudget,
) -> DecodedCall:
    budget.take()
    selector = "0x" + data[:4].hex()
    target_key = normalize_address(target) if target else None

    entry = registry.get(target_key)
    if entry is None:
        logger.debug(f"No interface for {target_key}; leaving {selector} undecoded")
        return _unknown_node(target_key, selector, None, DecoderWarning(
            DecoderWarningKind.UNKNOWN_INTERFACE,
            "No interface available for this contract address.",
        ))

    candidates = entry.candidates(selector)
    if not candidates:
        return _unknown_node(target_key, selector, entry, DecoderWarning(
            DecoderWarningKind.SELECTOR_NOT_FOUND,
            f"Selector {selector} is not part of the known interface.",
        ))

    function, values, warnings = _select_candidate(candidates, data[4:], intended_signature)
    if function is None:
        return _unknown_node(target_key, selector, entry, *warnings)

    node = DecodedCall(
        target=target_key,
        selector=selector,
        function_name=function.name,
        signature=function.signature,
        params=_build_params(function, values),
        source=entry.source,
        confidence=entry.confidence,
        warnings=warnings,
    )
    _annotate_amounts(node, function, tokens)

    if function.name in SINGLE_CALL_WRAPPERS and function.input_types[:3] == SINGLE_WRAPPER_TYPES:
        inner = [(values[0], values[2])]
        _decode_children(node, inner, registry, max_depth, tokens, budget)
    elif function.name in BATCH_CALL_WRAPPERS and function.input_types[:3] == BATCH_WRAPPER_TYPES:
        targets, call_values, payloads = values[0], values[1], values[2]
        if not (len(targets) == len(call_values) == len(payloads)):
            message = (f"{function.name} has mismatched array lengths "
                       f"(targets={len(targets)}, values={len(call_values)}, payloads={len(payloads)}); "
                       f"inner calls left undecoded.")
            log_anomaly(logger, DecoderWarningKind.MALFORMED_BATCH_ARITY, message, target=target_key,
                        targets=len(targets), values=len(call_values), payloads=len(payloads))
            node.warnings.append(DecoderWarning(DecoderWarningKind.MALFORMED_BATCH_ARITY, message))
        else:
            _decode_children(node, list(zip(targets, payloads)), registry, max_depth, tokens, budget)

    return node


def _decode_children(
    node: DecodedCall,
    inner_calls: Sequence[Tuple[str, bytes]],
    registry: InterfaceRegistry,
    max_depth: int,
    tokens: Dict[str, TokenMetadata],
    budget: _NodeBudget,
):
    if max_depth <= 1:
        node.warnings.append(DecoderWarning(
            DecoderWarningKind.DEPTH_EXCEEDED,
            f"Recursion depth limit reached; {len(inner_calls)} inner call(s) left undecoded.",
        ))
        return

    if len(inner_calls) > MAX_BATCH_CALLS:
        node.warnings.append(DecoderWarning(
            DecoderWarningKind.TRUNCATED_RECURSION,
            f"{node.function_name} truncated to first {MAX_BATCH_CALLS} calls for safety.",
        ))
        inner_calls = inner_calls[:MAX_BATCH_CALLS]

    for inner_target, payload in inner_calls:
        if budget.exhausted:
            node.warnings.append(DecoderWarning(
                DecoderWarningKind.TRUNCATED_RECURSION,
                "Decoder stopped due to node limit.",
            ))
            break
        if len(payload) < 4:
            budget.take()
            node.children.append(DecodedCall(
                target=normalize_address(inner_target),
                selector="0x",
                function_name=UNKNOWN_FUNCTION,
                signature="",
                warnings=[DecoderWarning(
                    DecoderWarningKind.EMPTY_PAYLOAD,
                    "Inner call has no function selector (plain value transfer).",
                )],
                decoded=False,
            ))
            continue
        node.children.append(
            _decode_node(inner_target, payload, registry, max_depth - 1, None, tokens, budget)
        )


# ============================================================================
# CANDIDATE SELECTION
# ============================================================================

def _select_candidate(
    candidates: List[FunctionDescriptor],
    body: bytes,
    intended_signature: Optional[str],
) -> Tuple[Optional[FunctionDescriptor], Optional[tuple], List[DecoderWarning]]:
    """
    Decode the argument bytes with every candidate sharing the selector.

    Picks the first candidate matching the intended signature's types when
    given, otherwise the first candidate that decodes. When several decode
    and nothing disambiguates them, the first wins and the result is flagged.
    """
    decoded = []
    errors = []
    for function in candidates:
        try:
            values = abi_decode(function.input_types, body)
        except Exception as e:
            logger.debug(f"Candidate {function.signature} failed to decode: {e}")
            errors.append(f"{function.signature}: {e}")
            continue
        decoded.append((function, values))

    if not decoded:
        return None, None, [DecoderWarning(
            DecoderWarningKind.DECODE_FAILED,
            "Arguments do not match the known interface: " + "; ".join(errors),
        )]

    warnings = []
    if intended_signature:
        wanted = signature_types(intended_signature)
        for function, values in decoded:
            if wanted is not None and function.input_types == wanted:
                return function, values, warnings

    if len(decoded) > 1:
        names = ", ".join(f.signature for f, _ in decoded)
        logger.debug(f"Ambiguous selector; candidates {names}")
        warnings.append(DecoderWarning(
            DecoderWarningKind.AMBIGUOUS_SELECTOR,
            f"Multiple functions decode this selector ({names}); showing the first.",
        ))
    function, values = decoded[0]
    return function, values, warnings


# ============================================================================
# PARAMS
# ============================================================================

def _build_params(function: FunctionDescriptor, values: tuple) -> List[DecodedParam]:
    params = []
    for idx, (spec, value) in enumerate(zip(function.inputs, values)):
        abi_type = spec.canonical_type
        params.append(DecodedParam(
            name=spec.name or f"param{idx}",
            type=abi_type,
            value=normalize_value(abi_type, value),
        ))
    return params


def normalize_value(abi_type: str, value):
    """
    Normalize an eth_abi value for the data model.
    Addresses become lowercase, arrays and tuples become lists; integers and
    bytes are kept as-is.
    """
    if abi_type.endswith(']'):
        element_type = abi_type[:abi_type.rindex('[')]
        return [normalize_value(element_type, v) for v in value]
    if abi_type.startswith('('):
        inner = abi_type[1:-1]
        types = split_top_level(inner) if inner else []
        return [normalize_value(t, v) for t, v in zip(types, value)]
    if abi_type == 'address':
        return value.lower()
    return value


def _annotate_amounts(node: DecodedCall, function: FunctionDescriptor, tokens: Dict[str, TokenMetadata]):
    """Attach formatted amounts for token transfers and native value arguments"""
    if function.signature in TOKEN_AMOUNT_SIGNATURES and node.target in tokens:
        meta = tokens[node.target]
        amount = node.params[-1]
        amount.display = format_amount(amount.value, meta.decimals, meta.symbol)

    if function.name in SINGLE_CALL_WRAPPERS and function.input_types[:3] == SINGLE_WRAPPER_TYPES:
        value = node.params[1]
        value.display = format_amount(value.value, NATIVE_DECIMALS, NATIVE_SYMBOL)
    elif function.name in BATCH_CALL_WRAPPERS and function.input_types[:3] == BATCH_WRAPPER_TYPES:
        values = node.params[1]
        values.display = ", ".join(format_amount(v, NATIVE_DECIMALS, NATIVE_SYMBOL) for v in values.value)


def _unknown_node(target: Optional[str], selector: str, entry: Optional[InterfaceEntry],
                  *warnings: DecoderWarning) -> DecodedCall:
    return DecodedCall(
        target=target,
        selector=selector,
        function_name=UNKNOWN_FUNCTION,
        signature="",
        source=entry.source if entry else None,
        confidence=entry.confidence if entry else None,
        warnings=list(warnings),
        decoded=False,
    )
