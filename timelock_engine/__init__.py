"""
Timelock operation interpretation engine.

Pure interpretation of TimelockController data:
- Recursive calldata decoding against an interface registry
- Operation lifecycle status
- Role membership replay from grant/revoke events
"""

__version__ = "0.1.0"
