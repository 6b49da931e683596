"""
Rolling-update controller for managed instance groups.

Points the group's primary version at a freshly named version of its current
instance template and asks Compute Engine to replace every instance, one
after another, waiting min_ready_sec for each to become healthy. The
replacement itself runs server-side; this module only initiates it.
"""

import copy
import logging
import time
from typing import Optional

from clients import ComputeRestClient
from errors import ValidationError
from models import (
    REPLACE_ACTION,
    InstanceGroupPolicy,
    OperationResult,
    RolloutRequest,
    VersionRecord,
)

logger = logging.getLogger(__name__)


def version_name(timestamp: int) -> str:
    return f"0-{timestamp}"


def build_rollout_policy(
    policy: InstanceGroupPolicy, min_ready_sec: int, timestamp: int
) -> InstanceGroupPolicy:
    """
    Return a copy of policy that forces a rolling replace.

    versions[0] is replaced by a new version of the current instance template;
    the versions list never grows.

    Raises:
        ValidationError: If the group has no versions or no instance template
    """
    errors = []
    if not policy.versions:
        errors.append("instance group has no versions to replace")
    if not policy.instance_template:
        errors.append("instance group has no instance template")
    if errors:
        raise ValidationError(errors)

    patched = copy.deepcopy(policy)
    patched.versions[0] = VersionRecord(
        name=version_name(timestamp),
        instance_template=policy.instance_template,
    )
    patched.update_policy.minimal_action = REPLACE_ACTION
    patched.update_policy.min_ready_sec = min_ready_sec
    return patched


class RollingUpdateController:
    """Triggers provider-managed rolling replacement of a managed instance group."""

    def __init__(self, dry_run: bool = False, api: Optional[ComputeRestClient] = None):
        self.dry_run = dry_run
        self._api = api

    @property
    def api(self) -> ComputeRestClient:
        if self._api is None:
            self._api = ComputeRestClient()
        return self._api

    def rolling_replace(self, request: RolloutRequest) -> Optional[OperationResult]:
        """
        Patch the group so that all its instances are replaced.

        Args:
            request: Target group and minimum ready seconds

        Returns:
            The operation result, or None in dry-run mode

        Raises:
            ValidationError: If the request is incomplete or the group has no versions or template
            RemoteReadError: If the group cannot be read
            RemoteWriteError: If the patch is not accepted
            OperationError: If the returned operation carries errors
        """
        request.validate()

        policy = self.api.get_instance_group_policy(
            request.project_id, request.zone, request.group_name
        )
        patched = build_rollout_policy(policy, request.min_ready_sec, int(time.time()))
        logger.info(
            f"group {request.group_name}: version {patched.versions[0].name} "
            f"-> {patched.instance_template} (minReadySec={request.min_ready_sec})"
        )

        if self.dry_run:
            logger.info(f"DRY RUN: would patch group {request.group_name}")
            return None

        result = self.api.patch_instance_group_policy(
            request.project_id, request.zone, request.group_name, patched
        )
        if not result.ok:
            for e in result.errors:
                logger.error(f"{e.code} {e.message} {e.location}")
        result.raise_for_errors(f"Patch instance group {request.group_name}")

        logger.info(f"replacing group {request.group_name} (operation={result.name})")
        return result
