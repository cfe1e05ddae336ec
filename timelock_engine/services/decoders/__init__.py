"""
Calldata decoding for TimelockController operations.

- base: DecodedCall tree, warnings, trust enums
- interfaces: InterfaceRegistry and function descriptors
- calldata_decoder: recursive execute / executeBatch decoding
- formatter: display helpers for amounts and durations
- dangerous: upgrade / ownership / delay change detection
- abis: embedded TimelockController and ERC-20 interfaces
"""

from .base import (
    # Enums
    InterfaceSource,
    Confidence,
    DecoderWarningKind,
    # Dataclasses
    DecoderWarning,
    DecodedParam,
    DecodedCall,
    TokenMetadata,
    UNKNOWN_FUNCTION,
)

from .interfaces import (
    ParamSpec,
    FunctionDescriptor,
    InterfaceEntry,
    InterfaceRegistry,
    normalize_address,
    is_valid_address,
)

from .calldata_decoder import (
    decode,
    decode_calldata,
    decode_operation,
)

from .formatter import (
    format_amount,
    to_decimal_amount,
    format_address,
    format_seconds_to_time,
    format_relative_time,
)

from .dangerous import (
    DangerousCall,
    get_dangerous_call,
    find_dangerous_calls,
)

from .abis import known_registry

__all__ = [
    # Enums
    'InterfaceSource',
    'Confidence',
    'DecoderWarningKind',
    # Dataclasses
    'DecoderWarning',
    'DecodedParam',
    'DecodedCall',
    'TokenMetadata',
    'UNKNOWN_FUNCTION',
    # Registry
    'ParamSpec',
    'FunctionDescriptor',
    'InterfaceEntry',
    'InterfaceRegistry',
    'normalize_address',
    'is_valid_address',
    'known_registry',
    # Decoder
    'decode',
    'decode_calldata',
    'decode_operation',
    # Formatting
    'format_amount',
    'to_decimal_amount',
    'format_address',
    'format_seconds_to_time',
    'format_relative_time',
    # Dangerous calls
    'DangerousCall',
    'get_dangerous_call',
    'find_dangerous_calls',
]
