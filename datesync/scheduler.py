"""
Scheduling service for periodic sync runs
"""

import time
import signal
import logging
from datetime import datetime, timedelta
from croniter import croniter
from datesync.config import get_scheduler_config

logger = logging.getLogger(__name__)

POLL_SECONDS = 60


class SchedulerService:
    """Runs the sync on a cron schedule or a fixed interval, one run at a time"""

    def __init__(self, sync_func, diagnostic_func=None):
        self.sync_func = sync_func
        self.diagnostic_func = diagnostic_func
        self.running = True

        config = get_scheduler_config()
        self.sync_schedule = config['sync_schedule']
        self.sync_interval_hours = config['sync_interval_hours']
        self.startup_delay = config['startup_delay']

        self.last_sync = None
        self.last_check = None

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.running = False

    def next_sync_time(self, now=None):
        """Next run time for the configured schedule"""
        now = now or datetime.now()
        if self.sync_interval_hours > 0:
            if self.last_sync is None:
                return now
            return self.last_sync + timedelta(hours=self.sync_interval_hours)
        try:
            return croniter(self.sync_schedule, now).get_next(datetime)
        except ValueError as e:
            logger.error(f"Invalid cron schedule '{self.sync_schedule}': {e}")
            return now + timedelta(hours=1)

    def sync_due(self, now=None):
        """Whether a run is due at ``now``.

        In cron mode the window runs from the previous check to ``now``, so a
        scheduled time falling between two polls is never skipped.
        """
        now = now or datetime.now()
        if self.sync_interval_hours > 0:
            if self.last_sync is None:
                return True
            return now - self.last_sync >= timedelta(hours=self.sync_interval_hours)

        window_start = self.last_check or now - timedelta(seconds=POLL_SECONDS)
        self.last_check = now
        try:
            cron = croniter(self.sync_schedule, window_start)
            return cron.get_next(datetime) <= now
        except ValueError as e:
            logger.error(f"Invalid cron schedule '{self.sync_schedule}': {e}")
            return False

    def _perform_sync(self):
        try:
            logger.info("Starting sync run...")
            success = self.sync_func()
        except Exception as e:
            logger.error(f"Sync run failed: {e}")
            return False

        self.last_sync = datetime.now()
        if success:
            logger.info("Sync run completed successfully")
        else:
            logger.warning("Sync run completed with errors")
        return success

    def _wait_with_interrupt_check(self, seconds):
        end_time = time.time() + seconds
        while time.time() < end_time and self.running:
            time.sleep(min(1, end_time - time.time()))

    def run_daemon(self):
        """Run as daemon with scheduled syncs"""
        logger.info("Starting date sync daemon...")
        if self.sync_interval_hours > 0:
            logger.info(f"Sync interval: every {self.sync_interval_hours} hours")
        else:
            logger.info(f"Sync schedule: {self.sync_schedule}")

        if self.diagnostic_func is not None:
            try:
                self.diagnostic_func()
            except Exception as e:
                logger.error(f"Startup diagnostic failed: {e}")

        if self.startup_delay > 0:
            logger.info(f"Waiting {self.startup_delay} seconds before starting...")
            self._wait_with_interrupt_check(self.startup_delay)

        if not self.running:
            logger.info("Shutdown requested during startup delay")
            return

        logger.info("Running initial sync...")
        self._perform_sync()
        logger.info(f"Next sync: {self.next_sync_time().strftime('%Y-%m-%d %H:%M:%S')}")

        while self.running:
            try:
                if self.sync_due():
                    self._perform_sync()
                    logger.info(f"Next sync: {self.next_sync_time().strftime('%Y-%m-%d %H:%M:%S')}")
            except Exception as e:
                logger.error(f"Error in scheduling loop: {e}")

            self._wait_with_interrupt_check(POLL_SECONDS)

        logger.info("Scheduler daemon stopped")

    def run_once(self):
        """Run sync once, returns a process exit code"""
        success = self._perform_sync()
        return 0 if success else 1
