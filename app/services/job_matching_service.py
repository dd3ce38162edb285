"""
Job matching service - decides which jobs an alert matches in one cycle.

The service turns an alert's stored criteria into a search filter, runs
the time-bounded alert search, scores and ranks the hits, and caps the
result. It performs no writes; recording and delivery belong to
AlertDeliveryService.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from app.core.config import settings
from app.core.logging import get_logger
from app.models.base import utcnow
from app.models.enums import JobType
from app.models.job_alert import JobAlert
from app.search.client import SearchIndexClient, SearchResults
from app.search.query_builder import FilterQueryBuilder
from app.search.schema import from_epoch_seconds, to_epoch_seconds

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


@dataclass
class ScoredMatch:
    job_id: UUID
    score: float
    relevance: float
    recency: float


@dataclass
class MatchResult:
    matches: list[ScoredMatch] = field(default_factory=list)
    found: int = 0
    truncated: bool = False
    # Newest hit of a truncated page; the next window starts here
    resume_from: Optional[datetime] = None


def skip_reason(alert: JobAlert) -> Optional[str]:
    """Why an alert must not be scanned this cycle, or None to scan it."""
    if not alert.is_active:
        return "inactive"
    if alert.is_paused:
        return "paused"
    if not alert.has_criteria:
        return "no_criteria"
    if alert.user is not None and not alert.user.is_active:
        return "user_inactive"
    return None


class JobMatchingService:
    """Alert matching engine."""

    def __init__(
        self,
        search: SearchIndexClient,
        *,
        match_limit: Optional[int] = None,
        relevance_weight: Optional[float] = None,
        recency_weight: Optional[float] = None,
        default_relevance: Optional[float] = None,
        recency_window_days: Optional[int] = None,
    ):
        self.search = search
        self.match_limit = match_limit or settings.alert_match_limit
        self.relevance_weight = settings.alert_relevance_weight if relevance_weight is None else relevance_weight
        self.recency_weight = settings.alert_recency_weight if recency_weight is None else recency_weight
        self.default_relevance = settings.alert_default_relevance if default_relevance is None else default_relevance
        self.recency_window_days = recency_window_days or settings.alert_recency_window_days
        self._builder = FilterQueryBuilder()

    def build_filter(self, alert: JobAlert) -> str:
        """
        Translate stored criteria into a filter expression.

        Skills are a requirement set (all must match); job types and
        experience levels are alternatives. The remote flag only widens a
        location filter, so an alert without a location is not narrowed to
        remote jobs.
        """
        builder = self._builder.reset()

        if alert.city or alert.state:
            builder.add_location_filters(
                {"city": alert.city, "state": alert.state},
                include_remote=alert.include_remote,
            )
        builder.add_skill_filters(alert.skills, match_all=True)
        builder.add_array_filter("jobType", [JobType.normalize(t) for t in (alert.job_types or [])])
        builder.add_array_filter("experience", alert.experience_levels)
        return builder.build()

    async def find_matches(
        self,
        alert: JobAlert,
        *,
        exclude_job_ids: Iterable[UUID] = (),
        now: Optional[datetime] = None,
    ) -> MatchResult:
        """
        Search, score and cap matches for one alert.

        Hits arrive oldest first, so a truncated page covers the start of
        the window and `resume_from` marks where the rest begins.

        SearchIndexError propagates: the caller must leave the watermark
        untouched so the same window is searched again.
        """
        now = now or utcnow()
        filter_by = self.build_filter(alert)

        results = await self.search.search_for_alert(
            alert.search_query,
            filter_by,
            alert.last_sent_at,
            self.match_limit,
            exclude_ids=[str(i) for i in exclude_job_ids],
        )

        scored = self.score(results, now)
        capped = scored[: self.match_limit]
        # More matched than one page returned: the rest waits for the next cycle
        truncated = results.found > len(results.hits)
        resume_from = None
        if truncated:
            newest = max((h.created_at for h in results.hits if h.created_at is not None), default=None)
            resume_from = from_epoch_seconds(newest) if newest is not None else None

        logger.info(
            "alert_search_completed",
            alert_id=str(alert.id),
            found=results.found,
            matched=len(capped),
            truncated=truncated,
        )
        return MatchResult(
            matches=capped,
            found=results.found,
            truncated=truncated,
            resume_from=resume_from,
        )

    def score(self, results: SearchResults, now: datetime) -> list[ScoredMatch]:
        """
        Composite score: relevance * 0.7 + recency * 0.3 (default weights).

        Relevance is the hit's text-match normalized to the best hit (0-100);
        match-all searches have no text score and use the configured
        default. Recency decays linearly from 100 at posting to 0 at the
        end of the window.
        """
        best = max((h.text_match for h in results.hits), default=0)
        now_ts = to_epoch_seconds(now)
        window = self.recency_window_days * SECONDS_PER_DAY

        scored = []
        for hit in results.hits:
            try:
                job_id = uuid.UUID(hit.job_id)
            except ValueError:
                logger.warning("search_hit_invalid_id", document_id=hit.job_id)
                continue

            if results.is_match_all or best <= 0:
                relevance = self.default_relevance
            else:
                relevance = hit.text_match / best * 100

            age = max(now_ts - (hit.created_at or now_ts), 0)
            recency = max(0.0, 100.0 * (1 - age / window))

            score = relevance * self.relevance_weight + recency * self.recency_weight
            scored.append(
                ScoredMatch(
                    job_id=job_id,
                    score=round(score, 2),
                    relevance=round(relevance, 2),
                    recency=round(recency, 2),
                )
            )

        scored.sort(key=lambda m: m.score, reverse=True)
        return scored
