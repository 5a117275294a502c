from .step_10_probe_environment import ProbeEnvironmentStep
from .step_20_ensure_package_manager import EnsurePackageManagerStep
from .step_25_update_package_manager import UpdatePackageManagerStep
from .step_30_ensure_runtime import EnsureRuntimeStep
from .step_35_ensure_package_installer import EnsurePackageInstallerStep
from .step_40_acquire_repository import AcquireRepositoryStep
from .step_50_install_dependencies import InstallDependenciesStep
from .step_60_synthesize_launcher import SynthesizeLauncherStep
from .step_90_report_summary import ReportSummaryStep

__all__ = [
    "ProbeEnvironmentStep",
    "EnsurePackageManagerStep",
    "UpdatePackageManagerStep",
    "EnsureRuntimeStep",
    "EnsurePackageInstallerStep",
    "AcquireRepositoryStep",
    "InstallDependenciesStep",
    "SynthesizeLauncherStep",
    "ReportSummaryStep",
]
