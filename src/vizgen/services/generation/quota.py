"""Per-user daily generation quota."""

from dataclasses import dataclass
from datetime import datetime

from vizgen.core.timezone import start_of_day
from vizgen.repositories.generation_job import GenerationJobRepository

DEFAULT_DAILY_LIMIT = 100


@dataclass(frozen=True)
class AdmitDecision:
    """Result of a quota check."""

    admitted: bool
    used: int  # Jobs created today (UTC)
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)


class QuotaGuard:
    """Caps how many jobs a user may create per UTC calendar day.

    The count is recomputed from job creation timestamps on every check.
    """

    def __init__(self, daily_limit: int = DEFAULT_DAILY_LIMIT):
        self.daily_limit = daily_limit

    async def check(
        self,
        jobs: GenerationJobRepository,
        user_id: int,
        now: datetime | None = None,
    ) -> AdmitDecision:
        """Decide whether ``user_id`` may create another job right now.

        Has no side effects; denial leaves the store untouched.
        """
        used = await jobs.count_created_since(user_id, start_of_day(now))
        return AdmitDecision(admitted=used < self.daily_limit, used=used, limit=self.daily_limit)
