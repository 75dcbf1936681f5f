"""Exception hierarchy for angrr.

Every fatal condition raised by the retention pass derives from
AngrrError so the CLI can report it uniformly. Recoverable conditions
(missing targets, foreign owners, paths outside the store) are logged
and never raised.
"""


class AngrrError(Exception):
    """Base exception for all angrr errors."""


class TraversalError(AngrrError):
    """Raised when a GC root directory, entry, symlink or profile cannot be read."""


class FilterError(AngrrError):
    """Raised when an external filter program cannot be run to completion."""


class RemovalError(AngrrError):
    """Raised when removing a GC root or its target fails."""


class PromptError(AngrrError):
    """Raised when a confirmation prompt cannot be answered."""


class UserLookupError(AngrrError):
    """Raised when a uid has no corresponding user account."""


class OutputError(AngrrError):
    """Raised when the removed-path output cannot be opened or written."""
