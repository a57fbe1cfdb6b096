"""
Stateful services living on the control thread: folder authorization,
settings, scan coordination, copy batches and the session that ties
them together.
"""

from xfer.services.authorization import AccessHandle, AuthorizationStore, Grant
from xfer.services.copy_engine import CopyEngine
from xfer.services.scan_coordinator import ScanCoordinator
from xfer.services.session import FolderChooser, TransferSession
from xfer.services.settings import ApplicationSettings, SettingsManager

__all__ = [
    'AccessHandle',
    'ApplicationSettings',
    'AuthorizationStore',
    'CopyEngine',
    'FolderChooser',
    'Grant',
    'ScanCoordinator',
    'SettingsManager',
    'TransferSession',
]
