from gallery.sync.engine import SyncEngine
from gallery.sync.poller import TaskPoller
from gallery.sync.promoter import GalleryPromoter
from gallery.sync.reconciler import CategoryReconciler
from gallery.sync.state_store import LocalStateStore
from gallery.sync.submitter import GenerationSubmitter
from gallery.sync.uploads import IngestionReport, UploadOrchestrator

__all__ = [
    "CategoryReconciler",
    "GalleryPromoter",
    "GenerationSubmitter",
    "IngestionReport",
    "LocalStateStore",
    "SyncEngine",
    "TaskPoller",
    "UploadOrchestrator",
]
