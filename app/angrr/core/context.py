"""Ambient state captured once at the start of a run.

Policies never query the clock, the process uid or the system
generation links themselves. They receive a Current snapshot instead,
which keeps a whole retention pass replayable with injected fixtures.
"""

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from angrr.core.paths import BOOTED_SYSTEM_LINK, CURRENT_SYSTEM_LINK

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Current:
    """Snapshot of the system state relevant to policy decisions.

    Attributes:
        now: Wall-clock time the run started (UTC).
        uid: Effective uid of the running process.
        booted_system: Canonical store path of the booted system, if any.
        current_system: Canonical store path of the activated system, if any.
    """

    now: datetime
    uid: int
    booted_system: Path | None = None
    current_system: Path | None = None

    @classmethod
    def capture(cls) -> "Current":
        """Capture the current time, uid and system generation links."""
        return cls(
            now=datetime.now(UTC),
            uid=os.geteuid(),
            booted_system=_resolve_system_link(BOOTED_SYSTEM_LINK),
            current_system=_resolve_system_link(CURRENT_SYSTEM_LINK),
        )


def _resolve_system_link(link: Path) -> Path | None:
    """Canonicalize a system generation link, None if it does not resolve."""
    try:
        return Path(os.path.realpath(link, strict=True))
    except OSError as e:
        logger.debug("cannot resolve %s: %s", link, e)
        return None
