from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class ProvisioningState:
    """What the run has resolved so far. Lives for one process only."""

    arch: Optional[str] = None
    shell: Optional[str] = None
    profile_path: Optional[Path] = None

    package_manager: Optional[str] = None
    package_manager_prefix: Optional[str] = None
    runtime: Optional[str] = None
    package_installer: Optional[str] = None

    project_dir: Optional[Path] = None
    requirements_file: Optional[Path] = None
    launcher_path: Optional[Path] = None
    entry_point: Optional[str] = None

    installed: List[str] = field(default_factory=list)
    ran_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
