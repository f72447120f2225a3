"""Rebuild vote counters from the stored vote rows."""
from __future__ import annotations

import argparse
import logging

from ventbuddy_stage.db.session import SessionLocal
from ventbuddy_stage.schemas.common import ContentType
from ventbuddy_stage.services.engagement import EngagementAggregator
from ventbuddy_stage.services.errors import ContentNotFound

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile vote counters with vote rows")
    parser.add_argument(
        "--content-type",
        choices=[member.value for member in ContentType],
        help="Recount a single item of this type (requires --content-id).",
    )
    parser.add_argument("--content-id", type=int, help="Identifier of the item to recount.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each recounted item.")
    args = parser.parse_args()

    if (args.content_type is None) != (args.content_id is None):
        parser.error("--content-type and --content-id must be given together")

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    with SessionLocal() as db:
        if args.content_type:
            try:
                stats = EngagementAggregator.recount(
                    db, ContentType(args.content_type), args.content_id
                )
            except ContentNotFound as err:
                parser.exit(1, f"[recount] {err}\n")
            print(
                f"[recount] {args.content_type} {args.content_id}: "
                f"{stats.upvote_count} up, {stats.downvote_count} down"
            )
            return

        total = EngagementAggregator.recount_all(db)
        print(f"[recount] reconciled {total} item(s)")


if __name__ == "__main__":
    main()
