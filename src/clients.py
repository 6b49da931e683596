"""
REST API client for Google Compute Engine (v1 API).
"""

import logging
from typing import Dict, List, Optional

import google.auth
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession

from errors import (
    OptimisticConcurrencyError,
    RemoteError,
    RemoteReadError,
    RemoteWriteError,
)
from models import InstanceGroupPolicy, MetadataStore, OperationResult, Project

logger = logging.getLogger(__name__)

API_BASE = "https://compute.googleapis.com/compute/v1"
COMPUTE_SCOPE = "https://www.googleapis.com/auth/compute"


class ComputeRestClient:
    """REST client for the Compute Engine API."""

    PRECONDITION_FAILED = 412

    def __init__(self, timeout_s: Optional[float] = None):
        """
        Initialize the Compute REST client.

        Every call is attempted exactly once.

        Args:
            timeout_s: Request timeout in seconds (None waits indefinitely)
        """
        self.timeout_s = timeout_s

        creds, _ = google.auth.default(scopes=[COMPUTE_SCOPE])
        self.session = AuthorizedSession(creds)

    def _url(self, path: str) -> str:
        """Construct full API URL from path."""
        return f"{API_BASE}/{path.lstrip('/')}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        if method == "GET":
            return self.session.get(url, timeout=self.timeout_s, **kwargs)
        if method == "POST":
            return self.session.post(url, timeout=self.timeout_s, **kwargs)
        if method == "PATCH":
            return self.session.patch(url, timeout=self.timeout_s, **kwargs)
        raise ValueError(f"Unsupported method: {method}")

    def _request(
        self, method: str, url: str, error_cls=RemoteError, **kwargs
    ) -> requests.Response:
        """
        Execute a single HTTP request.

        Args:
            method: HTTP method (GET, POST, PATCH)
            url: Request URL
            error_cls: RemoteError subclass raised on transport or auth failure
            **kwargs: Additional request parameters

        Returns:
            The response (any status code)

        Raises:
            RemoteError: If the transport fails or credentials cannot be refreshed
        """
        method = method.upper()
        try:
            return self._send(method, url, **kwargs)
        except (requests.exceptions.RequestException, GoogleAuthError) as e:
            raise error_cls(f"{method} {url} failed: {e}") from e

    def _decode(self, what: str, resp, error_cls) -> Dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise error_cls(
                f"{what} returned a non-JSON body ({resp.status_code}): {resp.text[:200]}",
                resp.status_code,
            ) from e
        if not isinstance(data, dict):
            raise error_cls(
                f"{what} returned unexpected response: {data!r}", resp.status_code
            )
        return data

    def _read(self, what: str, path: str, **kwargs) -> Dict:
        resp = self._request("GET", self._url(path), error_cls=RemoteReadError, **kwargs)
        if resp.status_code != 200:
            raise RemoteReadError(
                f"{what} failed ({resp.status_code}): {_error_message(resp)}",
                resp.status_code,
            )
        return self._decode(what, resp, RemoteReadError)

    def _write(self, what: str, method: str, path: str, body: Dict) -> OperationResult:
        resp = self._request(
            method, self._url(path), error_cls=RemoteWriteError, json=body
        )
        if resp.status_code == self.PRECONDITION_FAILED:
            raise OptimisticConcurrencyError(
                f"{what} rejected, fingerprint is stale: {_error_message(resp)}",
                resp.status_code,
            )
        if resp.status_code not in (200, 202):
            raise RemoteWriteError(
                f"{what} failed ({resp.status_code}): {_error_message(resp)}",
                resp.status_code,
            )
        return OperationResult.from_dict(self._decode(what, resp, RemoteWriteError))

    def get_project(self, project_id: str) -> Project:
        """
        Get a project with its common instance metadata.

        Raises:
            RemoteReadError: If the API call fails
        """
        return Project.from_dict(self._read("Get project", f"projects/{project_id}"))

    def set_common_metadata(
        self, project_id: str, metadata: MetadataStore
    ) -> OperationResult:
        """
        Replace the project's common metadata with the given store.

        The store's fingerprint must be the one last read; the API rejects the
        write otherwise.

        Raises:
            OptimisticConcurrencyError: If the fingerprint is stale
            RemoteWriteError: If the API call fails
        """
        return self._write(
            "setCommonInstanceMetadata",
            "POST",
            f"projects/{project_id}/setCommonInstanceMetadata",
            metadata.to_dict(),
        )

    def _group_path(self, project_id: str, zone: str, group_name: str) -> str:
        return f"projects/{project_id}/zones/{zone}/instanceGroupManagers/{group_name}"

    def get_instance_group_policy(
        self, project_id: str, zone: str, group_name: str
    ) -> InstanceGroupPolicy:
        """
        Get the template, versions and update policy of a managed instance group.

        Raises:
            RemoteReadError: If the API call fails
        """
        data = self._read(
            "Get instance group", self._group_path(project_id, zone, group_name)
        )
        return InstanceGroupPolicy.from_dict(data)

    def patch_instance_group_policy(
        self,
        project_id: str,
        zone: str,
        group_name: str,
        policy: InstanceGroupPolicy,
    ) -> OperationResult:
        """
        Patch a managed instance group with the given policy.

        Raises:
            OptimisticConcurrencyError: If the group's fingerprint is stale
            RemoteWriteError: If the API call fails
        """
        return self._write(
            "Patch instance group",
            "PATCH",
            self._group_path(project_id, zone, group_name),
            policy.to_dict(),
        )

    def list_managed_instances(
        self, project_id: str, zone: str, group_name: str
    ) -> List[str]:
        """
        List the instances managed by a group.

        Returns:
            Instance references of the form zones/<zone>/instances/<name>

        Raises:
            RemoteReadError: If the API call fails
        """
        url = self._url(
            f"{self._group_path(project_id, zone, group_name)}/listManagedInstances"
        )
        instances: List[str] = []
        page_token: Optional[str] = None

        while True:
            params = {}
            if page_token:
                params["pageToken"] = page_token

            resp = self._request(
                "POST", url, error_cls=RemoteReadError, params=params
            )
            if resp.status_code != 200:
                raise RemoteReadError(
                    f"List managed instances failed ({resp.status_code}): {_error_message(resp)}",
                    resp.status_code,
                )

            data = self._decode("List managed instances", resp, RemoteReadError)
            for item in data.get("managedInstances") or []:
                if not item or "instance" not in item:
                    continue
                parts = item["instance"].split("/")
                instances.append("/".join(parts[-4:]))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return instances

    def aggregated_list_instance_groups(self, project_id: str) -> Dict[str, List[str]]:
        """
        List managed instance groups across all zones of a project.

        Returns:
            Mapping of zone name to group names, only zones with groups

        Raises:
            RemoteReadError: If the API call fails
        """
        path = f"projects/{project_id}/aggregated/instanceGroupManagers"
        groups: Dict[str, List[str]] = {}
        page_token: Optional[str] = None

        while True:
            params = {}
            if page_token:
                params["pageToken"] = page_token

            data = self._read("Aggregated list instance groups", path, params=params)
            for scope, scoped in (data.get("items") or {}).items():
                for igm in scoped.get("instanceGroupManagers", []):
                    if "zone" not in igm:
                        logger.debug(f"Skipping regional group {igm.get('name')} ({scope})")
                        continue
                    zone = igm["zone"].split("/")[-1]
                    groups.setdefault(zone, []).append(igm["name"])

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return groups


def _error_message(resp) -> str:
    """Extract the API error message from a response, falling back to raw text."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    message = ""
    if isinstance(data, dict):
        message = (data.get("error") or {}).get("message", "")
    return message or resp.text[:200]
