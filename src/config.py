"""
Configuration management for the rollerderby compute control tool.
"""

import os
from dataclasses import dataclass
from typing import Optional

VERSION = "1.0.0"
SOURCE = "github.com/fresh8/rollerderby"

PROJECT_ENV = "GOOGLE_PROJECT_ID"
CREDENTIALS_ENV = "GOOGLE_APPLICATION_CREDENTIALS"


@dataclass
class ToolConfig:
    """Configuration for a single invocation."""

    project_id: str
    key: str = ""
    value: str = ""
    zone: str = ""
    group: str = ""
    min_ready_sec: int = 30
    snapshot_dir: str = "."
    compare_project: str = ""
    list_meta: bool = False
    list_groups: bool = False
    show_version: bool = False
    dry_run: bool = False
    verbose: bool = False
    credentials_path: Optional[str] = None
    version: str = VERSION
    source: str = SOURCE

    @property
    def read_only(self) -> bool:
        """True for the listing modes, which never mutate anything."""
        return bool(self.compare_project or self.list_meta or self.list_groups)

    @property
    def wants_metadata_update(self) -> bool:
        return bool(self.key or self.value) or not self.group

    @classmethod
    def from_args(cls, args, environ=None) -> "ToolConfig":
        """
        Create configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments
            environ: Environment mapping (defaults to os.environ)

        Returns:
            ToolConfig instance
        """
        environ = os.environ if environ is None else environ
        return cls(
            project_id=args.project or environ.get(PROJECT_ENV, ""),
            key=args.key or "",
            value=args.value or "",
            zone=args.zone or "",
            group=args.group or "",
            min_ready_sec=args.min_ready,
            snapshot_dir=args.snapshot_dir,
            compare_project=args.compare or "",
            list_meta=args.list,
            list_groups=args.list_groups,
            show_version=args.version,
            dry_run=args.dry_run,
            verbose=args.verbose,
            credentials_path=environ.get(CREDENTIALS_ENV) or None,
        )
