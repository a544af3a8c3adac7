"""URI triggers (e.g. from an NFC tag) mapped to session commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import ClientSession

logger = logging.getLogger(__name__)

ROOM_PRESENCE_URI = "piled://room_presence"


def handle_trigger_uri(session: ClientSession, uri: str) -> bool:
    """Run the command bound to ``uri``.

    Returns:
        True if the URI is known and its command was sent, False if the
        URI is not recognised. Errors from the command propagate.
    """
    if uri.strip() == ROOM_PRESENCE_URI:
        logger.info("%s trigger received", ROOM_PRESENCE_URI)
        session.send_toggle_suspend()
        return True

    logger.info("Ignoring unknown trigger URI %r", uri)
    return False
