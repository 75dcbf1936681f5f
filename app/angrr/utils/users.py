"""User account lookups."""

import logging
import pwd
from pathlib import Path

logger = logging.getLogger(__name__)


def home_dir_for_uid(uid: int) -> Path | None:
    """Look up the home directory of a user by uid.

    Args:
        uid: Numeric user id.

    Returns:
        The user's home directory, or None if no account has this uid.
    """
    try:
        return Path(pwd.getpwuid(uid).pw_dir)
    except KeyError:
        logger.debug("no user account for uid %d", uid)
        return None
