"""Core functionality for cup."""

from .address import FileAddress, Scope
from .config import Config
from .dirs import Directories
from .export import ExportManager
from .manifest import Manifest
from .reconcile import ArchiveReconciler, SyncReport
from .repository import GitRepository, Repository

__all__ = [
    "ArchiveReconciler",
    "Config",
    "Directories",
    "ExportManager",
    "FileAddress",
    "GitRepository",
    "Manifest",
    "Repository",
    "Scope",
    "SyncReport",
]
