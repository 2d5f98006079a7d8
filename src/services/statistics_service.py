"""
Statistics Service.
Aggregates per-owner drug counts against a single point in time.
"""
from src.core.clock import Clock
from src.core.logger import get_logger
from src.models.drug_statistics import DrugStatistics
from src.repositories.db_repository import DrugRepository
from src.repositories.dynamo_repository import DynamoRepository

logger = get_logger(__name__)


class StatisticsService:
    """Computes statistics snapshots; results are never cached."""

    def __init__(self, repository: DrugRepository = None, clock: Clock = None):
        self.repository = repository or DynamoRepository()
        self.clock = clock or Clock()

    def get_statistics(self, owner_id: str) -> DrugStatistics:
        """
        Compute statistics for an owner.

        Counts are separate reads, so concurrent writes can make them
        disagree slightly; the active count never goes negative.

        Raises:
            RepositoryException: If any count fails
        """
        now = self.clock.now()

        total = self.repository.count_total(owner_id)
        expired = self.repository.count_expired(owner_id, now)
        alerts_sent = self.repository.count_alerts_sent(owner_id)
        by_form = self.repository.count_grouped_by_form(owner_id)

        statistics = DrugStatistics(
            total_drugs=total,
            expired_drugs=expired,
            active_drugs=max(total - expired, 0),
            alert_sent_count=alerts_sent,
            drugs_by_form={form: count for form, count in by_form.items() if count > 0}
        )
        logger.info("Statistics for owner %s: total=%d expired=%d alerts_sent=%d",
                    owner_id, total, expired, alerts_sent)
        return statistics
