"""
Expiry Alert Service.
Finds drugs about to expire, sends one consolidated email per owner and
records which drugs were alerted.
"""
import concurrent.futures
import threading
from collections import OrderedDict
from datetime import timedelta
from typing import Dict, List, Optional
from src.core import config
from src.core.cache import OwnerScopedCache
from src.core.clock import Clock
from src.core.exceptions import NotificationException
from src.core.logger import get_logger
from src.models.drug_model import Drug
from src.models.drug_statistics import SweepSummary
from src.models.user_model import User
from src.repositories.db_repository import DrugRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.repositories.user_repository import UserRepository
from src.services.email_service import Notifier, SesEmailNotifier

logger = get_logger(__name__)

SEND_WORKERS = 4


def build_alert_message(drugs: List[Drug], zone=None):
    """Build the (subject, body) of a consolidated expiry alert."""
    subject = f"Drug Expiry Alert - {len(drugs)} drug(s) expiring soon"

    lines = [
        "Attention!",
        "",
        "The following drugs in your medicine cabinet are about to expire.",
        "Please check them as soon as possible.",
        ""
    ]
    for index, drug in enumerate(drugs, start=1):
        expiration = drug.expiration_date.astimezone(zone) if zone else drug.expiration_date
        lines.append(f"{index}. {drug.name}")
        lines.append(f"   Expiration date: {expiration.date().isoformat()}")
        if drug.description:
            lines.append(f"   Description: {drug.description}")
        lines.append("")
    lines.append("Please check these items and replace expired drugs.")
    lines.append("Your Medicine Cabinet")

    return subject, "\n".join(lines)


class ExpiryAlertService:
    """Runs expiry alert sweeps; only one pass runs at a time per instance."""

    def __init__(
        self,
        drug_repository: DrugRepository = None,
        user_repository: UserRepository = None,
        notifier: Notifier = None,
        clock: Clock = None,
        cache: Optional[OwnerScopedCache] = None,
        horizon_days: int = None,
        timeout_seconds: float = None
    ):
        self.drug_repository = drug_repository or DynamoRepository()
        self.user_repository = user_repository or UserRepository()
        self.notifier = notifier or SesEmailNotifier()
        self.clock = clock or Clock()
        self.cache = cache
        self.horizon_days = horizon_days if horizon_days is not None else config.settings.alert_horizon_days
        self.timeout_seconds = timeout_seconds or config.settings.notification_timeout_seconds
        self._sweep_lock = threading.Lock()

    def run_sweep(self, owner_id: str = None) -> SweepSummary:
        """
        Run one sweep pass.

        Args:
            owner_id: Restrict the pass to one owner, or None for everyone

        Returns:
            SweepSummary; ``skipped`` is set when another pass was running

        Raises:
            RepositoryException: If due drugs cannot be read
        """
        if not self._sweep_lock.acquire(blocking=False):
            logger.info("Expiry alert sweep already in progress, skipping")
            return SweepSummary(skipped=True)
        # a timed-out send keeps its worker thread, so the pool is not joined
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=SEND_WORKERS, thread_name_prefix="alert-send")
        try:
            return self._sweep(owner_id, executor)
        finally:
            executor.shutdown(wait=False)
            self._sweep_lock.release()

    def _sweep(self, owner_id: Optional[str], executor: concurrent.futures.Executor) -> SweepSummary:
        now = self.clock.now()
        until = now + timedelta(days=self.horizon_days)
        due = self.drug_repository.find_due_for_alert(now, until, owner_id=owner_id)
        logger.info("Expiry alert sweep found %d due drug(s) between %s and %s",
                    len(due), now.isoformat(), until.isoformat())

        summary = SweepSummary()
        for owner, drugs in self._group_by_owner(due).items():
            user = self.user_repository.get_by_username(owner)
            if user is None or not user.can_receive_alerts():
                logger.info("Skipping alerts for owner %s: no address or alerts disabled", owner)
                summary.groups_skipped += 1
                continue

            summary.groups_attempted += 1
            try:
                self._notify(executor, user, drugs)
            except concurrent.futures.TimeoutError:
                logger.warning("Alert email to owner %s timed out after %ss", owner, self.timeout_seconds)
                summary.failures[owner] = f"Notification timed out after {self.timeout_seconds}s"
                continue
            except NotificationException as e:
                logger.warning("Alert email to owner %s failed: %s", owner, e.message)
                summary.failures[owner] = e.message
                continue
            except Exception as e:
                logger.error("Unexpected error alerting owner %s: %s", owner, e)
                summary.failures[owner] = str(e)
                continue

            try:
                summary.drugs_marked += self._mark_sent(owner, drugs, now)
            except Exception as e:
                # The email went out; the next pass may resend, which is acceptable
                logger.error("Failed to record alerts for owner %s: %s", owner, e)
                summary.failures[owner] = str(e)
                continue
            summary.groups_succeeded += 1

        logger.info("Expiry alert sweep done: attempted=%d succeeded=%d skipped=%d marked=%d",
                    summary.groups_attempted, summary.groups_succeeded,
                    summary.groups_skipped, summary.drugs_marked)
        return summary

    def _notify(self, executor: concurrent.futures.Executor, user: User, drugs: List[Drug]) -> None:
        subject, body = build_alert_message(drugs, self.clock.zone)
        future = executor.submit(self.notifier.send, user.email, subject, body)
        future.result(timeout=self.timeout_seconds)
        logger.info("Sent expiry alert for %d drug(s) to owner %s", len(drugs), user.username)

    def _mark_sent(self, owner: str, drugs: List[Drug], sent_at) -> int:
        marked = 0
        for drug in drugs:
            if self.drug_repository.mark_alert_sent(drug, sent_at):
                marked += 1
        if self.cache is not None:
            self.cache.invalidate_owner(owner)
        return marked

    @staticmethod
    def _group_by_owner(drugs: List[Drug]) -> Dict[str, List[Drug]]:
        groups: Dict[str, List[Drug]] = OrderedDict()
        for drug in sorted(drugs, key=lambda d: d.expiration_date):
            groups.setdefault(drug.owner_id, []).append(drug)
        return groups


def sweep_response(summary: SweepSummary) -> dict:
    """Serialize a SweepSummary for API and Lambda responses."""
    return {
        'skipped': summary.skipped,
        'groups_attempted': summary.groups_attempted,
        'groups_succeeded': summary.groups_succeeded,
        'groups_failed': summary.groups_failed,
        'groups_skipped': summary.groups_skipped,
        'drugs_marked': summary.drugs_marked,
        'failures': dict(summary.failures)
    }
