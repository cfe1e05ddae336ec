"""
Interface Registry - in-memory contract interface descriptions.

Maps a contract address (case-insensitive) to the function descriptors known
for it, each entry tagged with where it came from and how much it can be
trusted. The registry is populated by the caller (manual paste, verified
contract lookup, signature guess, cache restore) and only read by the
decoder. Re-registering an address replaces the previous entry.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from eth_utils import function_signature_to_4byte_selector, is_hex_address

from .base import InterfaceSource, Confidence
from ...exceptions import InterfaceParseError

logger = logging.getLogger(__name__)

_TEXT_SIGNATURE_RE = re.compile(r"^\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)\s*$", re.DOTALL)
_PARAM_SUFFIX_RE = re.compile(
    r"(\s+(memory|calldata|storage|indexed))?(\s+[A-Za-z_$][A-Za-z0-9_$]*)?$"
)


_TYPE_ALIASES = {
    'uint': 'uint256',
    'int': 'int256',
    'fixed': 'fixed128x18',
    'ufixed': 'ufixed128x18',
}
_ALIAS_RE = re.compile(r"^(uint|int|fixed|ufixed)(?=$|\[)")


def expand_type_alias(abi_type: str) -> str:
    """uint -> uint256, int[] -> int256[], fixed -> fixed128x18; other types unchanged"""
    return _ALIAS_RE.sub(lambda m: _TYPE_ALIASES[m.group(1)], abi_type)


def normalize_address(address: str) -> str:
    """
    Loose address normalization used for registry keys and role members.
    Trims whitespace and wrapping quotes, normalizes 0X -> 0x and lowercases.
    """
    text = str(address).strip().strip('"\'')
    if text[:2] == "0X":
        text = "0x" + text[2:]
    return text.lower()


def is_valid_address(address) -> bool:
    """True for a 0x-prefixed 20-byte hex string, regardless of checksum casing"""
    if not isinstance(address, str):
        return False
    normalized = normalize_address(address)
    return normalized.startswith("0x") and is_hex_address(normalized)


def split_top_level(params: str) -> List[str]:
    """Split a comma separated type list, ignoring commas inside parentheses"""
    parts = []
    depth = 0
    current = []
    for ch in params:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth < 0:
                raise InterfaceParseError(f"Unbalanced parentheses in '{params}'")
        if ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise InterfaceParseError(f"Unbalanced parentheses in '{params}'")
    tail = ''.join(current).strip()
    if tail or parts:
        parts.append(tail)
    if any(not p for p in parts):
        raise InterfaceParseError(f"Empty parameter type in '{params}'")
    return parts


def _text_type(part: str) -> str:
    """
    Canonical type of one text-signature parameter.
    Drops parameter names and data locations: "(address to, uint256 amt)[] calls" -> "(address,uint256)[]".
    """
    part = _PARAM_SUFFIX_RE.sub('', part.strip())
    if part.startswith('('):
        close = _matching_paren(part)
        inner = part[1:close]
        inner_types = [_text_type(p) for p in split_top_level(inner)] if inner.strip() else []
        return f"({','.join(inner_types)}){part[close + 1:].replace(' ', '')}"
    return expand_type_alias(part.split()[0]) if part else part


def _matching_paren(text: str) -> int:
    depth = 0
    for i, ch in enumerate(text):
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
    raise InterfaceParseError(f"Unbalanced parentheses in '{text}'")


@dataclass(frozen=True)
class ParamSpec:
    """One function input. `components` is set for tuple (struct) inputs."""
    name: str
    type: str
    components: Tuple['ParamSpec', ...] = ()

    @classmethod
    def from_abi(cls, item: dict) -> 'ParamSpec':
        if 'type' not in item:
            raise InterfaceParseError(f"ABI input without type: {item}")
        components = tuple(cls.from_abi(c) for c in item.get('components') or [])
        return cls(name=item.get('name') or '', type=item['type'], components=components)

    @property
    def canonical_type(self) -> str:
        """Type as used in selectors and by eth_abi, e.g. (address,uint256)[]"""
        if self.type.startswith('tuple'):
            inner = ','.join(c.canonical_type for c in self.components)
            return f"({inner}){self.type[len('tuple'):]}"
        return expand_type_alias(self.type)


@dataclass(frozen=True)
class FunctionDescriptor:
    """A callable function of a contract interface"""
    name: str
    inputs: Tuple[ParamSpec, ...] = ()

    @classmethod
    def from_abi(cls, item: dict) -> 'FunctionDescriptor':
        name = item.get('name')
        if not name:
            raise InterfaceParseError(f"ABI function without name: {item}")
        inputs = tuple(ParamSpec.from_abi(i) for i in item.get('inputs') or [])
        return cls(name=name, inputs=inputs)

    @classmethod
    def from_text_signature(cls, text_signature: str) -> 'FunctionDescriptor':
        """
        Build a descriptor from a text signature like "transfer(address,uint256)".

        Parameter names are not part of a text signature, so inputs are named
        param0, param1, ...
        """
        match = _TEXT_SIGNATURE_RE.match(text_signature or '')
        if not match:
            raise InterfaceParseError(f"Invalid text signature format: {text_signature}")
        name, params_str = match.groups()
        types = split_top_level(params_str) if params_str.strip() else []
        inputs = tuple(ParamSpec(name=f"param{i}", type=_text_type(t)) for i, t in enumerate(types))
        return cls(name=name, inputs=inputs)

    @property
    def input_types(self) -> List[str]:
        return [p.canonical_type for p in self.inputs]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> str:
        return "0x" + function_signature_to_4byte_selector(self.signature).hex()


@dataclass(frozen=True)
class InterfaceEntry:
    """Known interface of one contract address"""
    address: str
    functions: Tuple[FunctionDescriptor, ...]
    source: InterfaceSource
    confidence: Confidence

    @classmethod
    def from_abi(cls, address: str, abi: Iterable[dict],
                 source: InterfaceSource = InterfaceSource.MANUAL,
                 confidence: Confidence = Confidence.HIGH) -> 'InterfaceEntry':
        """Build an entry from a JSON ABI list. Events, errors and constructors are skipped."""
        functions = []
        for item in abi:
            if not isinstance(item, dict):
                raise InterfaceParseError(f"ABI item is not an object: {item!r}")
            if item.get('type', 'function') != 'function':
                continue
            functions.append(FunctionDescriptor.from_abi(item))
        return cls(address=_checked_address(address), functions=tuple(functions),
                   source=source, confidence=confidence)

    @classmethod
    def from_text_signatures(cls, address: str, signatures: Iterable[str],
                             source: InterfaceSource = InterfaceSource.HEURISTIC,
                             confidence: Confidence = Confidence.LOW) -> 'InterfaceEntry':
        """Build an entry from guessed text signatures (4byte-style lookups)"""
        functions = tuple(FunctionDescriptor.from_text_signature(s) for s in signatures)
        return cls(address=_checked_address(address), functions=functions,
                   source=source, confidence=confidence)

    def candidates(self, selector: str) -> List[FunctionDescriptor]:
        """Descriptors whose selector matches, in declaration order"""
        selector = selector.lower()
        return [f for f in self.functions if f.selector == selector]


def _checked_address(address: str) -> str:
    if not is_valid_address(address):
        raise InterfaceParseError(f"Invalid contract address: {address!r}")
    return normalize_address(address)


class InterfaceRegistry:
    """
    Address -> InterfaceEntry map.

    Keys are lowercase addresses; the last registration for an address wins.
    Pass a snapshot into each decode call rather than sharing one instance
    between writers and readers.
    """

    def __init__(self, entries: Optional[Iterable[InterfaceEntry]] = None):
        self._entries: Dict[str, InterfaceEntry] = {}
        for entry in entries or []:
            self.register(entry)

    def register(self, entry: InterfaceEntry) -> InterfaceEntry:
        key = normalize_address(entry.address)
        previous = self._entries.get(key)
        if previous is not None:
            logger.debug(f"Replacing {previous.source.value} interface for {key[:10]}... "
                         f"with {entry.source.value}")
        self._entries[key] = entry
        return entry

    def register_abi(self, address: str, abi: Iterable[dict],
                     source: InterfaceSource = InterfaceSource.MANUAL,
                     confidence: Confidence = Confidence.HIGH) -> InterfaceEntry:
        return self.register(InterfaceEntry.from_abi(address, abi, source, confidence))

    def register_signatures(self, address: str, signatures: Iterable[str],
                            source: InterfaceSource = InterfaceSource.HEURISTIC,
                            confidence: Confidence = Confidence.LOW) -> InterfaceEntry:
        return self.register(InterfaceEntry.from_text_signatures(address, signatures, source, confidence))

    def get(self, address: Optional[str]) -> Optional[InterfaceEntry]:
        if not address:
            return None
        return self._entries.get(normalize_address(address))

    def remove(self, address: str) -> Optional[InterfaceEntry]:
        return self._entries.pop(normalize_address(address), None)

    def snapshot(self) -> 'InterfaceRegistry':
        """Independent copy; entries are immutable so sharing them is safe"""
        return InterfaceRegistry(self._entries.values())

    def __contains__(self, address) -> bool:
        return isinstance(address, str) and normalize_address(address) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
