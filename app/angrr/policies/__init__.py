"""Retention policies."""

from angrr.policies.filter import ExternalFilter, FilterInput
from angrr.policies.profile import ProfilePolicy
from angrr.policies.temporary import TemporaryRootPolicy

__all__ = [
    "ExternalFilter",
    "FilterInput",
    "ProfilePolicy",
    "TemporaryRootPolicy",
]
