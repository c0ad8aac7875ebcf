# jobboard/cli.py
"""Operator command line for the job board.

    job-board init-db
    job-board pending [--metro portland-or]
    job-board confirm-payment SUBMISSION_ID
    job-board approve SUBMISSION_ID [--pin-days 30]
    job-board reject SUBMISSION_ID "Not a coffee job"
    job-board refund-confirmed SUBMISSION_ID
    job-board pin LISTING_ID [--days N | --forever]
    job-board unpin LISTING_ID
    job-board list portland-or
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from jobboard.config import default_pin_days, metros_from_env
from jobboard.core.errors import BoardError
from jobboard.core.lifecycle import LifecycleState
from jobboard.core.metros import resolve_metro
from jobboard.core.pins import is_pinned_now
from jobboard.core.ranking import rank
from jobboard.core.timestamps import utcnow
from jobboard.db import crud, moderation
from jobboard.db.models import Base
from jobboard.db.session import ENGINE, check_connection, current_engine_url, get_session

LOGGER = logging.getLogger("jobboard.cli")


def _fmt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def cmd_init_db(args: argparse.Namespace) -> int:
    LOGGER.info("Initializing database schema at %s", current_engine_url())
    Base.metadata.create_all(bind=ENGINE)
    if not check_connection():
        LOGGER.error("Database is not reachable")
        return 1
    LOGGER.info("Database schema initialized successfully.")
    return 0


def cmd_pending(args: argparse.Namespace) -> int:
    with get_session() as session:
        rows = crud.list_submissions(
            session,
            state=LifecycleState.PENDING_REVIEW.value,
            metro_slug=args.metro,
        )
        for s in rows:
            pin = " [pin requested]" if s.requested_pinned else ""
            print(f"{s.id}  {s.metro_slug}  {s.role} - {s.cafe_name}  {s.pay}  paid {_fmt(s.paid_at)}{pin}")
        print(f"{len(rows)} pending")
    return 0


def cmd_confirm_payment(args: argparse.Namespace) -> int:
    with get_session() as session:
        s = moderation.confirm_payment(session, args.submission_id)
    print(f"{s.id} -> {s.lifecycle_state}")
    return 0


def cmd_approve(args: argparse.Namespace) -> int:
    with get_session() as session:
        listing = moderation.approve(session, args.submission_id, pin_days=args.pin_days)
    print(f"published listing {listing.id} (pinned until {_fmt(listing.pinned_until)})" if listing.pinned
          else f"published listing {listing.id}")
    return 0


def cmd_reject(args: argparse.Namespace) -> int:
    with get_session() as session:
        intent = moderation.reject(session, args.submission_id, args.reason)
    contact = intent.contact_email or "no contact email"
    print(f"{intent.submission_id} rejected; refund owed ({contact})")
    return 0


def cmd_refund_confirmed(args: argparse.Namespace) -> int:
    with get_session() as session:
        s = moderation.confirm_refund(session, args.submission_id)
    print(f"{s.id} -> {s.lifecycle_state}")
    return 0


def cmd_pin(args: argparse.Namespace) -> int:
    days = None if args.forever else (args.days or default_pin_days())
    with get_session() as session:
        listing = crud.set_pin(session, args.listing_id, days=days)
    print(f"{listing.id} pinned until {_fmt(listing.pinned_until) if listing.pinned_until else 'further notice'}")
    return 0


def cmd_unpin(args: argparse.Namespace) -> int:
    with get_session() as session:
        listing = crud.clear_pin(session, args.listing_id)
    print(f"{listing.id} unpinned")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    metro = resolve_metro(metros_from_env(), args.metro)
    if metro is None:
        print(f"Unknown metro: {args.metro}", file=sys.stderr)
        return 1
    now = utcnow()
    with get_session() as session:
        for j in rank(crud.listings_for_metro(session, metro.slug), now):
            flag = "PIN " if is_pinned_now(j, now) else "    "
            print(f"{flag}{_fmt(j.created_at)}  {j.role} - {j.cafe_name}  {j.pay}  ({j.id})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-board", description="Job board moderation tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create database tables")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("pending", help="List submissions waiting for review")
    p.add_argument("--metro", type=str, default=None, help="Only this metro slug")
    p.set_defaults(func=cmd_pending)

    p = sub.add_parser("confirm-payment", help="Record a payment the webhook missed")
    p.add_argument("submission_id")
    p.set_defaults(func=cmd_confirm_payment)

    p = sub.add_parser("approve", help="Approve and publish a submission")
    p.add_argument("submission_id")
    p.add_argument("--pin-days", type=int, default=None, help="Also pin the listing for N days")
    p.set_defaults(func=cmd_approve)

    p = sub.add_parser("reject", help="Reject a submission (a refund becomes owed)")
    p.add_argument("submission_id")
    p.add_argument("reason")
    p.set_defaults(func=cmd_reject)

    p = sub.add_parser("refund-confirmed", help="Record that a refund was paid out")
    p.add_argument("submission_id")
    p.set_defaults(func=cmd_refund_confirmed)

    p = sub.add_parser("pin", help="Grant or renew a pin")
    p.add_argument("listing_id")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--days", type=int, default=None,
                       help="Pin length in days (default BOARD_DEFAULT_PIN_DAYS)")
    group.add_argument("--forever", action="store_true", help="Pin with no end date")
    p.set_defaults(func=cmd_pin)

    p = sub.add_parser("unpin", help="Revoke a pin")
    p.add_argument("listing_id")
    p.set_defaults(func=cmd_unpin)

    p = sub.add_parser("list", help="Show a metro's listings in display order")
    p.add_argument("metro")
    p.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (BoardError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    # When executed as `python -m jobboard.cli ...`
    sys.exit(main())
