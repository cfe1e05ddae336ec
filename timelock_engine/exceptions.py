"""
Exceptions raised by the interpretation engine.

Partial or low-trust input never raises; it is reported through the warning
lists on result objects. These exceptions signal malformed call shapes
passed in by the caller.
"""


class TimelockEngineError(Exception):
    """Base class for engine errors"""


class CalldataDecodeError(TimelockEngineError, ValueError):
    """Calldata is not hex or is shorter than a 4-byte selector"""


class InterfaceParseError(TimelockEngineError, ValueError):
    """An ABI item or text signature could not be parsed"""


class RecordParseError(TimelockEngineError, ValueError):
    """An operation or event record is missing required fields"""
