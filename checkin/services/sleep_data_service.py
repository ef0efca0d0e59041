# checkin/services/sleep_data_service.py
"""Source of the suggested sleep hours shown in the sleep-check prompt"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

from checkin.core.config import Settings, settings

logger = logging.getLogger(__name__)


class SleepDataSource(ABC):

    @abstractmethod
    async def suggested_sleep_hours(self) -> Optional[float]:
        """Hours slept last night, or None when no data exists"""
        pass


class StaticSleepDataSource(SleepDataSource):
    """Returns a fixed value, e.g. from SUGGESTED_SLEEP_HOURS"""

    def __init__(self, hours: Optional[float] = None):
        self.hours = hours

    async def suggested_sleep_hours(self) -> Optional[float]:
        return self.hours


def create_sleep_data_source(current: Optional[Settings] = None) -> SleepDataSource:
    current = current or settings
    if current.SUGGESTED_SLEEP_HOURS is None:
        logger.debug("No SUGGESTED_SLEEP_HOURS configured, sleep prompt will ask without data")
    return StaticSleepDataSource(current.SUGGESTED_SLEEP_HOURS)
