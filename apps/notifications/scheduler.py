"""
Fixed-interval ticker for running the notification scan without a Q cluster.

The ticker only says when to run; what runs is up to the caller.
"""

import time
from datetime import timedelta

from django.utils import timezone


class Ticker:
    """
    Produce "run now" signals on a fixed interval.

    The first tick fires immediately. Later ticks are spaced `interval`
    apart measured from the start of the previous tick, so a slow run
    shortens the following wait instead of drifting the schedule.
    """

    def __init__(self, interval: timedelta, sleep=time.sleep, clock=timezone.now):
        if interval.total_seconds() <= 0:
            raise ValueError('Ticker interval must be positive')
        self.interval = interval
        self.sleep = sleep
        self.clock = clock

    def ticks(self, limit=None):
        """Yield the time of each tick; stop after `limit` ticks when given."""
        count = 0
        while limit is None or count < limit:
            started = self.clock()
            yield started
            count += 1
            if limit is not None and count >= limit:
                return
            remaining = (started + self.interval - self.clock()).total_seconds()
            if remaining > 0:
                self.sleep(remaining)
