"""
Data models for the rollerderby compute control tool.

The to_dict/from_dict pairs mirror the Compute Engine REST JSON shapes
(camelCase keys).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from errors import OperationError, ValidationError

REPLACE_ACTION = "REPLACE"


@dataclass
class MetadataItem:
    """A single common metadata key/value pair."""

    key: str
    value: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {"key": self.key}
        if self.value is not None:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "MetadataItem":
        return cls(key=data["key"], value=data.get("value"))


@dataclass
class MetadataStore:
    """Project-wide metadata: ordered items plus the version fingerprint."""

    fingerprint: Optional[str] = None
    items: List[MetadataItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        data: Dict = {"items": [item.to_dict() for item in self.items]}
        if self.fingerprint is not None:
            data["fingerprint"] = self.fingerprint
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "MetadataStore":
        data = data or {}
        return cls(
            fingerprint=data.get("fingerprint"),
            items=[MetadataItem.from_dict(i) for i in data.get("items", [])],
        )


@dataclass
class Project:
    """The parts of a Compute Engine project this tool reads."""

    name: str
    common_metadata: MetadataStore

    @classmethod
    def from_dict(cls, data: Dict) -> "Project":
        return cls(
            name=data["name"],
            common_metadata=MetadataStore.from_dict(
                data.get("commonInstanceMetadata")
            ),
        )


@dataclass
class VersionRecord:
    """One entry of a managed instance group's versions list."""

    name: Optional[str]
    instance_template: str

    def to_dict(self) -> Dict:
        data = {"instanceTemplate": self.instance_template}
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "VersionRecord":
        return cls(name=data.get("name"), instance_template=data["instanceTemplate"])


@dataclass
class UpdatePolicy:
    """Rollout settings of a managed instance group."""

    minimal_action: Optional[str] = None
    min_ready_sec: Optional[int] = None

    def to_dict(self) -> Dict:
        data: Dict = {}
        if self.minimal_action is not None:
            data["minimalAction"] = self.minimal_action
        if self.min_ready_sec is not None:
            data["minReadySec"] = self.min_ready_sec
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "UpdatePolicy":
        data = data or {}
        min_ready = data.get("minReadySec")
        return cls(
            minimal_action=data.get("minimalAction"),
            min_ready_sec=int(min_ready) if min_ready is not None else None,
        )


@dataclass
class InstanceGroupPolicy:
    """Template, versions and update policy of a managed instance group."""

    instance_template: str
    versions: List[VersionRecord] = field(default_factory=list)
    update_policy: UpdatePolicy = field(default_factory=UpdatePolicy)
    fingerprint: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            "instanceTemplate": self.instance_template,
            "versions": [v.to_dict() for v in self.versions],
            "updatePolicy": self.update_policy.to_dict(),
        }
        if self.fingerprint is not None:
            data["fingerprint"] = self.fingerprint
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "InstanceGroupPolicy":
        return cls(
            instance_template=data.get("instanceTemplate", ""),
            versions=[VersionRecord.from_dict(v) for v in data.get("versions", [])],
            update_policy=UpdatePolicy.from_dict(data.get("updatePolicy")),
            fingerprint=data.get("fingerprint"),
        )


@dataclass
class RolloutRequest:
    """Inputs for a single rolling-replace trigger."""

    project_id: str
    zone: str
    group_name: str
    min_ready_sec: int

    def validate(self) -> None:
        """
        Check every field and report all problems at once.

        Raises:
            ValidationError: If any field is blank or min_ready_sec is negative
        """
        errors = []
        if not self.project_id:
            errors.append("GOOGLE_PROJECT_ID cannot be blank")
        if not self.zone:
            errors.append("-zone cannot be blank")
        if not self.group_name:
            errors.append("-group cannot be blank")
        if self.min_ready_sec < 0:
            errors.append(f"-min-ready must be >= 0, got {self.min_ready_sec}")
        if errors:
            raise ValidationError(errors)


@dataclass
class OperationErrorEntry:
    """One structured error reported by a Compute Engine operation."""

    code: str
    message: str
    location: str = ""


@dataclass
class OperationResult:
    """Outcome of a mutating call as reported by the returned operation."""

    name: str = ""
    status: str = ""
    errors: List[OperationErrorEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self, operation: str) -> None:
        """Raise OperationError naming every entry if the operation failed."""
        if self.errors:
            raise OperationError(operation, self.errors)

    @classmethod
    def from_dict(cls, data: Dict) -> "OperationResult":
        entries = (data.get("error") or {}).get("errors", [])
        return cls(
            name=data.get("name", ""),
            status=data.get("status", ""),
            errors=[
                OperationErrorEntry(
                    code=e.get("code", ""),
                    message=e.get("message", ""),
                    location=e.get("location", ""),
                )
                for e in entries
            ],
        )


@dataclass
class CompareMeta:
    """Values held for one key by two projects being compared."""

    a: str = ""
    b: str = ""

    @property
    def equal(self) -> bool:
        return self.a == self.b
