"""
Session management for synocli.

Provides login/logout against the NAS and a scoped session that always logs out.
"""

from .manager import SessionManager, SessionScope

__all__ = ['SessionManager', 'SessionScope']
