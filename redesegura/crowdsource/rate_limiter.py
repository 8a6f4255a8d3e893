"""
Daily submission limiter
Caps how many reports a citizen can send per local calendar day
"""

import logging
from datetime import datetime, tzinfo
from typing import Optional

from redesegura.core.config import settings
from redesegura.core.exceptions import RateLimitError
from redesegura.crowdsource.models import as_utc
from redesegura.database.store import ReportStore

logger = logging.getLogger(__name__)


class DailySubmissionLimiter:
    """
    Counts a user's reports since local midnight and enforces the cap.

    The count and the later insert are separate store calls. Two
    submissions racing from the same user can both pass the check, so at
    most one report beyond the cap may be admitted. Strict enforcement
    needs a conditional insert from the store.
    """

    def __init__(
        self,
        store: ReportStore,
        limit: Optional[int] = None,
        tz: Optional[tzinfo] = None
    ):
        """
        Initialize limiter.

        Args:
            store: Report store to count submissions in
            limit: Reports allowed per day (default from settings)
            tz: Timezone defining "today" (default: system local time)
        """
        self.store = store
        self.limit = limit if limit is not None else settings.daily_report_limit
        self.tz = tz

    def start_of_day(self, now: Optional[datetime] = None) -> datetime:
        """Midnight of the current day in the limiter's timezone."""
        if now is None:
            local_now = datetime.now(self.tz).astimezone(self.tz)
        else:
            local_now = as_utc(now).astimezone(self.tz)
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)

    def count_submitted_today(
        self,
        user_id: str,
        now: Optional[datetime] = None
    ) -> int:
        """Number of reports the user created since midnight."""
        return self.store.count_reports(user_id, since=self.start_of_day(now))

    def remaining(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Submissions left for today."""
        return max(0, self.limit - self.count_submitted_today(user_id, now))

    def check(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        Ensure the user may submit another report today.

        Returns:
            Count of reports already submitted today

        Raises:
            RateLimitError: If the daily cap has been reached
        """
        count = self.count_submitted_today(user_id, now)
        if count >= self.limit:
            logger.warning(f"Daily limit reached for user {user_id} ({count}/{self.limit})")
            raise RateLimitError(user_id, self.limit)
        return count
