"""Authentication for winrmkrb.

Public API:
    Negotiator -- Abstract base class
    KerberosNegotiator -- pyspnego-backed Kerberos/SPNEGO negotiator
"""

from winrmkrb.auth.base import Negotiator

__all__ = ["Negotiator", "KerberosNegotiator"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "KerberosNegotiator":
        from winrmkrb.auth.kerberos import KerberosNegotiator
        return KerberosNegotiator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
