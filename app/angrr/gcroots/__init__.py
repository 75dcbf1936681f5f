"""GC root discovery and classification."""

from angrr.gcroots.models import GcRoot, Generation, Profile
from angrr.gcroots.scanner import GcRootScanner, expand_profile_paths, validate_store_path

__all__ = [
    "GcRoot",
    "GcRootScanner",
    "Generation",
    "Profile",
    "expand_profile_paths",
    "validate_store_path",
]
