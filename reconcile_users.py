"""
Report (and optionally fix) profile anomalies.

Dry run (default):
  - emails shared by more than one profile row
  - auth identities that have no profile under their id

With --apply every identity without a profile is resolved through
ProfileResolver (merge by email or create). Failures are logged and the
run continues with the next identity.

Usage:
    python reconcile_users.py [--apply]
"""
import argparse
import logging
from dataclasses import dataclass, field

from paytracker.application.reconciliation import (
    ProfileMergeError,
    ProfileResolver,
    find_duplicate_emails,
)
from paytracker.application.container import build_auth_provider, build_store_opener
from paytracker.config import get_settings
from paytracker.infrastructure.auth.base import AuthError, AuthIdentity, AuthProvider
from paytracker.infrastructure.store.base import USERS, RecordStore, RecordStoreError

logger = logging.getLogger("reconcile_users")


@dataclass
class ReconciliationReport:
    duplicate_emails: dict[str, int] = field(default_factory=dict)
    missing_profiles: list[AuthIdentity] = field(default_factory=list)
    resolved: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def build_report(store: RecordStore, provider: AuthProvider) -> ReconciliationReport:
    report = ReconciliationReport()
    report.duplicate_emails = {email: len(rows) for email, rows in find_duplicate_emails(store).items()}
    profile_ids = {row["id"] for row in store.select_all(USERS)}
    report.missing_profiles = [u for u in provider.list_users() if u.user_id not in profile_ids]
    return report


def apply_report(report: ReconciliationReport, resolver: ProfileResolver) -> ReconciliationReport:
    for identity in report.missing_profiles:
        try:
            resolution = resolver.resolve(identity.user_id, identity.email)
        except (ProfileMergeError, RecordStoreError) as exc:
            logger.error("Could not reconcile %s (%s): %s", identity.user_id, identity.email, exc)
            report.failed.append(identity.user_id)
            continue
        logger.info("Reconciled %s: %s", identity.user_id, resolution.state.value)
        report.resolved.append(identity.user_id)
    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--apply", action="store_true", help="create/merge missing profiles")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    settings = get_settings()
    store, close = build_store_opener(settings)()
    try:
        report = build_report(store, build_auth_provider(settings))
        if report.duplicate_emails:
            for email, count in report.duplicate_emails.items():
                logger.warning("Duplicate email %s -> %d rows", email, count)
        else:
            logger.info("No duplicate emails found")
        logger.info("%d auth identities without a profile", len(report.missing_profiles))

        if args.apply:
            apply_report(report, ProfileResolver(store))
            logger.info("Applied: %d resolved, %d failed", len(report.resolved), len(report.failed))
            return 1 if report.failed else 0
        if report.missing_profiles:
            logger.info("Run with --apply to create/merge these profiles")
        return 0
    except AuthError as exc:
        logger.error("Auth provider error: %s", exc)
        return 1
    finally:
        close()


if __name__ == "__main__":
    raise SystemExit(main())
