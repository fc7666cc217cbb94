"""
Share listing, locking and (batch) unlocking.
"""

from .batch import BatchCoordinator, UnlockRequest, dump_manifest, load_manifest
from .service import Share, ShareService

__all__ = [
    'BatchCoordinator',
    'Share',
    'ShareService',
    'UnlockRequest',
    'dump_manifest',
    'load_manifest',
]
