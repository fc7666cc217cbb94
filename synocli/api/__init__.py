"""
DSM Web API transport.
"""

from .transport import AUTH, SHARE, SHARE_CRYPTO, Endpoint, Transport

__all__ = ['AUTH', 'SHARE', 'SHARE_CRYPTO', 'Endpoint', 'Transport']
