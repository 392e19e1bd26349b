"""Core snapshot, replication and backup operations."""

from .capture import borg_sync, restic_sync
from .gaps import RunTally, structured_gaps, tagged_gaps
from .operations import clone_volume, run_transfer, sync_dataset
from .pipeline import TransferPipeline, build_transfer_pipeline, parse_send_size
from .planning import ReferenceKind, TransferMode, TransferPlan, plan_transfer
from .snapshots import prune_dataset, snapshot_name, take_snapshot

__all__ = [
    "ReferenceKind",
    "RunTally",
    "TransferMode",
    "TransferPipeline",
    "TransferPlan",
    "borg_sync",
    "build_transfer_pipeline",
    "clone_volume",
    "parse_send_size",
    "plan_transfer",
    "prune_dataset",
    "restic_sync",
    "run_transfer",
    "snapshot_name",
    "structured_gaps",
    "sync_dataset",
    "tagged_gaps",
    "take_snapshot",
]
