"""
Base classes and data structures for calldata decoding.
Shared by the interface registry, the recursive decoder and the formatter.
"""

from typing import List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class InterfaceSource(Enum):
    """Where an interface description came from"""
    MANUAL = "MANUAL"                  # Pasted by an operator
    FETCHED = "FETCHED"                # Verified-contract lookup service
    HEURISTIC = "HEURISTIC"            # Signature-guess service (4byte style)
    CACHED = "CACHED"                  # Restored from a caller-side cache
    KNOWN_REGISTRY = "KNOWN_REGISTRY"  # Embedded TimelockController / ERC20 ABIs


class Confidence(Enum):
    """Trust level of an interface description"""
    HIGH = "HIGH"
    LOW = "LOW"


class DecoderWarningKind(Enum):
    """Non-fatal conditions reported on a decoded node"""
    UNKNOWN_INTERFACE = "UNKNOWN_INTERFACE"
    SELECTOR_NOT_FOUND = "SELECTOR_NOT_FOUND"
    DECODE_FAILED = "DECODE_FAILED"
    AMBIGUOUS_SELECTOR = "AMBIGUOUS_SELECTOR"
    DEPTH_EXCEEDED = "DEPTH_EXCEEDED"
    MALFORMED_BATCH_ARITY = "MALFORMED_BATCH_ARITY"
    TRUNCATED_RECURSION = "TRUNCATED_RECURSION"
    EMPTY_PAYLOAD = "EMPTY_PAYLOAD"


UNKNOWN_FUNCTION = "unknown"


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class DecoderWarning:
    """Warning attached to a decoded node"""
    kind: DecoderWarningKind
    message: str

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'message': self.message}


@dataclass
class DecodedParam:
    """
    One decoded argument.

    `value` is authoritative. `display` is an optional human-readable
    annotation (e.g. "1.5 USDC") and is never substituted for the value.
    """
    name: str
    type: str
    value: Any
    display: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'type': self.type,
            'value': json_safe(self.value),
            'display': self.display,
        }


@dataclass
class DecodedCall:
    """
    Node of a decoded call tree.

    The root is the outermost call. `children` is only populated for
    delegation wrappers whose inner payloads were recoverable. `decoded` is
    False when the node could not be matched to a function descriptor.
    """
    target: Optional[str]
    selector: str
    function_name: str
    signature: str
    params: List[DecodedParam] = field(default_factory=list)
    source: Optional[InterfaceSource] = None
    confidence: Optional[Confidence] = None
    children: List['DecodedCall'] = field(default_factory=list)
    warnings: List[DecoderWarning] = field(default_factory=list)
    decoded: bool = True

    @property
    def is_unknown(self) -> bool:
        return self.function_name == UNKNOWN_FUNCTION

    @property
    def depth(self) -> int:
        """Number of levels in this subtree (a leaf has depth 1)"""
        if not self.children:
            return 1
        return 1 + max(child.depth for child in self.children)

    def param(self, name: str) -> Optional[DecodedParam]:
        for p in self.params:
            if p.name == name:
                return p
        return None

    def has_warning(self, kind: DecoderWarningKind) -> bool:
        return any(w.kind == kind for w in self.warnings)

    def walk(self):
        """Yield this node and all descendants, depth-first, in call order"""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dictionary."""
        return {
            'target': self.target,
            'selector': self.selector,
            'function_name': self.function_name,
            'signature': self.signature,
            'params': [p.to_dict() for p in self.params],
            'source': self.source.value if self.source else None,
            'confidence': self.confidence.value if self.confidence else None,
            'children': [c.to_dict() for c in self.children],
            'warnings': [w.to_dict() for w in self.warnings],
            'decoded': self.decoded,
        }


@dataclass(frozen=True)
class TokenMetadata:
    """Display metadata for an ERC-20 style token"""
    decimals: int
    symbol: Optional[str] = None


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def json_safe(value: Any) -> Any:
    """Convert decoded ABI values to JSON-safe types (ints as strings, bytes as hex)"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    return value


def normalize_hex(data) -> str:
    """Return calldata as a lowercase 0x-prefixed hex string"""
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    text = str(data).strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    return "0x" + text.lower()
