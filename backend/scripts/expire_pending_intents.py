"""Mark abandoned pending booking intents as expired.

Intended to run from cron. A success webhook arriving later still confirms
the booking.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import timedelta

from teetime.core.settings import get_quote_settings
from teetime.db.session import session_scope
from teetime.services.booking_intent_service import expire_stale_intents

logger = logging.getLogger(__name__)


async def expire_pending(older_than_minutes: int) -> int:
    async with session_scope() as session:
        return await expire_stale_intents(
            session, older_than=timedelta(minutes=older_than_minutes)
        )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=None,
        help="Age threshold; defaults to PENDING_INTENT_TTL_MINUTES",
    )
    args = parser.parse_args(argv)
    minutes = args.older_than_minutes or get_quote_settings().pending_intent_ttl_minutes

    logging.basicConfig(level=logging.INFO)
    expired = asyncio.run(expire_pending(minutes))
    print(f"Expired {expired} pending booking intent(s) older than {minutes} minutes.")


if __name__ == "__main__":
    main()
