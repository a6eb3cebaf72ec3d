"""
Operator maintenance commands for the users collection.

    python -m tourguide.scripts.maintenance flag-test-accounts --dry-run
    python -m tourguide.scripts.maintenance purge-test-accounts
    python -m tourguide.scripts.maintenance prune-guides --keep 5

Deletion only ever targets accounts explicitly flagged with
is_test_account (purge) or guides beyond the newest N (prune). The name
heuristics are used solely by flag-test-accounts, so flagged accounts can be
reviewed before anything is removed.
"""

import argparse
import asyncio
import logging
import re
from dataclasses import dataclass, field

from tourguide.core.logger import configure_logging
from tourguide.db import database
from tourguide.db.storage import MongoStorage, Storage
from tourguide.models.user import User

logger = logging.getLogger(__name__)

TEST_ACCOUNT_PATTERNS = [
    re.compile(r"^test", re.IGNORECASE),
    re.compile(r"test$", re.IGNORECASE),
    re.compile(r"example\.com$", re.IGNORECASE),
    re.compile(r"^guide$", re.IGNORECASE),
    re.compile(r"^tourist$", re.IGNORECASE),
    re.compile(r"^test_guide_\d+$", re.IGNORECASE),
]
TEST_FULL_NAME = re.compile(r"^Test ", re.IGNORECASE)


@dataclass
class MaintenanceReport:
    command: str
    dry_run: bool
    user_ids: list[str] = field(default_factory=list)
    profiles_deleted: int = 0
    connections_deleted: int = 0

    def log(self) -> None:
        prefix = "[DRY RUN] " if self.dry_run else ""
        logger.info("=" * 60)
        logger.info(f"🎯 {prefix}{self.command}: {len(self.user_ids)} users")
        if not self.dry_run:
            logger.info(f"   Guide profiles deleted: {self.profiles_deleted}")
            logger.info(f"   Connections deleted:    {self.connections_deleted}")
        logger.info("=" * 60)


def looks_like_test_account(user: User) -> bool:
    for pattern in TEST_ACCOUNT_PATTERNS:
        if pattern.search(user.username) or pattern.search(user.email):
            return True
    return bool(TEST_FULL_NAME.search(user.full_name))


async def _delete_user_cascade(storage: Storage, user: User, report: MaintenanceReport) -> None:
    """Profile and connections first, then the user itself."""
    if user.user_type == "guide":
        report.profiles_deleted += await storage.delete_guide_profile_for_user(user.id)
    report.connections_deleted += await storage.delete_connections_for_user(user.id)
    await storage.delete_user(user.id)


async def flag_test_accounts(storage: Storage, dry_run: bool = False) -> MaintenanceReport:
    report = MaintenanceReport("flag-test-accounts", dry_run)
    for user in await storage.list_users():
        if user.is_test_account or not looks_like_test_account(user):
            continue
        report.user_ids.append(user.id)
        if dry_run:
            logger.info(f"[DRY RUN] Would flag {user.username} ({user.id}) <{user.email}>")
        else:
            await storage.update_user(user.id, {"is_test_account": True})
            logger.info(f"🏷️  Flagged {user.username} ({user.id})")
    report.log()
    return report


async def purge_test_accounts(storage: Storage, dry_run: bool = False) -> MaintenanceReport:
    report = MaintenanceReport("purge-test-accounts", dry_run)
    for user in await storage.list_users():
        if not user.is_test_account:
            continue
        report.user_ids.append(user.id)
        if dry_run:
            logger.info(f"[DRY RUN] Would remove {user.username} ({user.id}), {user.user_type}")
            continue
        await _delete_user_cascade(storage, user, report)
        logger.info(f"🗑️  Removed {user.username} ({user.id})")
    report.log()
    return report


async def prune_guides(storage: Storage, keep: int = 5, dry_run: bool = False) -> MaintenanceReport:
    """Keep the `keep` most recently created guides; remove the rest."""
    if keep < 0:
        raise ValueError("keep must be >= 0")
    report = MaintenanceReport("prune-guides", dry_run)
    guides = sorted(await storage.list_users("guide"), key=lambda u: u.created_at, reverse=True)
    for guide in guides[keep:]:
        report.user_ids.append(guide.id)
        if dry_run:
            logger.info(f"[DRY RUN] Would remove guide {guide.username} ({guide.id})")
            continue
        await _delete_user_cascade(storage, guide, report)
        logger.info(f"🗑️  Removed guide {guide.username} ({guide.id})")
    report.log()
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Maharashtra Tour Guide maintenance commands.")
    sub = parser.add_subparsers(dest="command", required=True)

    flag = sub.add_parser("flag-test-accounts", help="Mark users that look like test accounts")
    flag.add_argument("--dry-run", action="store_true", help="Simulate only")

    purge = sub.add_parser("purge-test-accounts", help="Delete users flagged as test accounts")
    purge.add_argument("--dry-run", action="store_true", help="Simulate only")

    prune = sub.add_parser("prune-guides", help="Keep only the newest N guides")
    prune.add_argument("--keep", type=int, default=5, help="Number of guides to keep")
    prune.add_argument("--dry-run", action="store_true", help="Simulate only")
    return parser


async def run(args: argparse.Namespace, storage: Storage | None = None) -> MaintenanceReport:
    storage = storage or MongoStorage(database.get_database())
    try:
        if args.command == "flag-test-accounts":
            return await flag_test_accounts(storage, dry_run=args.dry_run)
        if args.command == "purge-test-accounts":
            return await purge_test_accounts(storage, dry_run=args.dry_run)
        return await prune_guides(storage, keep=args.keep, dry_run=args.dry_run)
    finally:
        await database.close_database_connection()


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    args = build_parser().parse_args(argv)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
