"""Gate components that can block a host action."""

from aai_hooks.gates.base import FailureMode, Gate
from aai_hooks.gates.branch_guard import BranchGuard
from aai_hooks.gates.claims import ClaimValidator
from aai_hooks.gates.package_manager import PackageManagerGuard
from aai_hooks.gates.verification import VerificationGate

__all__ = [
    "BranchGuard",
    "ClaimValidator",
    "FailureMode",
    "Gate",
    "PackageManagerGuard",
    "VerificationGate",
]
