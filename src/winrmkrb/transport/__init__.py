"""HTTP transport for WinRM requests.

Public API:
    WinRMTransport -- httpx-based transport with Negotiate handshake
"""

from winrmkrb.transport.http import WinRMTransport, extract_challenge

__all__ = ["WinRMTransport", "extract_challenge"]
