"""
Project common metadata synchronizer.

Updates exactly one key of a project's common instance metadata. The API only
accepts whole-store replacement, so an update is a read-modify-write bound to
the fingerprint that was read: a concurrent writer makes the submission fail
with OptimisticConcurrencyError rather than being overwritten.
"""

import logging
import os
import time
from typing import Dict, List, Optional

from clients import ComputeRestClient
from errors import ValidationError
from models import (
    CompareMeta,
    MetadataItem,
    MetadataStore,
    OperationResult,
    Project,
)
from snapshot import snapshot_filename, write_snapshot

logger = logging.getLogger(__name__)

# TODO: retry on OptimisticConcurrencyError by re-reading and re-applying the key.


def validate_update_params(project_id: str, key: str, value: str) -> List[str]:
    """Return a message for every blank parameter, empty if all are set."""
    errors = []
    if not project_id:
        errors.append("GOOGLE_PROJECT_ID cannot be blank")
    if not key:
        errors.append("-key cannot be blank")
    if not value:
        errors.append("-value cannot be blank")
    return errors


def apply_key(store: MetadataStore, key: str, value: str) -> MetadataStore:
    """
    Return a copy of store with key set to value.

    An existing key keeps its position; a new key is appended. If the store
    holds the key more than once, the last occurrence is updated.
    """
    items = [MetadataItem(key=i.key, value=i.value) for i in store.items]

    index = -1
    for i, item in enumerate(items):
        if item.key == key:
            index = i

    if index == -1:
        logger.info(f"{key}: <EMPTY> -> {value}")
        items.append(MetadataItem(key=key, value=value))
    else:
        logger.info(f"{key}: {items[index].value} -> {value}")
        items[index].value = value

    return MetadataStore(fingerprint=store.fingerprint, items=items)


class MetadataSynchronizer:
    """Reads, snapshots and updates a project's common metadata."""

    def __init__(
        self,
        project_id: str,
        snapshot_dir: str = ".",
        dry_run: bool = False,
        api: Optional[ComputeRestClient] = None,
    ):
        """
        Initialize the synchronizer.

        Args:
            project_id: GCP project ID
            snapshot_dir: Directory receiving pre-mutation snapshots
            dry_run: If True, log the change without snapshotting or submitting
            api: Compute client (created from default credentials if omitted)
        """
        self.project_id = project_id
        self.snapshot_dir = snapshot_dir
        self.dry_run = dry_run
        self._api = api

    @property
    def api(self) -> ComputeRestClient:
        if self._api is None:
            self._api = ComputeRestClient()
        return self._api

    def snapshot(self, project: Project) -> str:
        """Persist the project's current metadata; returns the snapshot path."""
        filename = snapshot_filename(project.name, int(time.time()))
        path = os.path.join(self.snapshot_dir, filename)
        return write_snapshot(project.common_metadata, path)

    def set_key(self, store: MetadataStore, key: str, value: str) -> OperationResult:
        """
        Submit store with key set to value, using the store's fingerprint.

        Raises:
            OptimisticConcurrencyError: If the store changed since it was read
            RemoteWriteError: If the API call fails
            OperationError: If the returned operation carries errors
        """
        logger.info(f"fingerprint: {store.fingerprint}")
        updated = apply_key(store, key, value)
        result = self.api.set_common_metadata(self.project_id, updated)
        result.raise_for_errors("setCommonInstanceMetadata")
        logger.info(f"metadata update submitted (operation={result.name})")
        return result

    def update_key(self, key: str, value: str) -> Optional[OperationResult]:
        """
        Validate, read, snapshot, then set one key in the project's metadata.

        Returns:
            The operation result, or None in dry-run mode

        Raises:
            ValidationError: If project, key or value is blank
            RemoteReadError: If the project cannot be read
            SnapshotWriteError: If the snapshot cannot be written
        """
        errors = validate_update_params(self.project_id, key, value)
        if errors:
            raise ValidationError(errors)

        project = self.api.get_project(self.project_id)

        if self.dry_run:
            logger.info(f"DRY RUN: would update {key} in project {project.name}")
            apply_key(project.common_metadata, key, value)
            return None

        self.snapshot(project)
        return self.set_key(project.common_metadata, key, value)

    def list_keys(self) -> List[MetadataItem]:
        """Return the project's metadata items sorted by key."""
        if not self.project_id:
            raise ValidationError(["GOOGLE_PROJECT_ID cannot be blank"])
        project = self.api.get_project(self.project_id)
        return sorted(project.common_metadata.items, key=lambda i: i.key)

    def compare(self, other_project_id: str) -> Dict[str, CompareMeta]:
        """
        Compare this project's metadata with another project's, key by key.

        Returns:
            Mapping of key to the value in each project ("" when absent)
        """
        errors = []
        if not self.project_id:
            errors.append("GOOGLE_PROJECT_ID cannot be blank")
        if not other_project_id:
            errors.append("-compare project cannot be blank")
        if errors:
            raise ValidationError(errors)

        a = self.api.get_project(self.project_id)
        b = self.api.get_project(other_project_id)

        keys: Dict[str, CompareMeta] = {}
        for item in a.common_metadata.items:
            if item.key in keys:
                logger.warning(
                    f"duplicate key seen in first project's metadata {item.key}"
                )
            keys[item.key] = CompareMeta(a=item.value or "")

        for item in b.common_metadata.items:
            keys.setdefault(item.key, CompareMeta()).b = item.value or ""

        return keys
