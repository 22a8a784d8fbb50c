"""
Background timer for the status refresh.

Runs main.run_status_refresh at a fixed interval in a single APScheduler
thread, started once per Streamlit server process.
"""
import logging

import streamlit as st
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import ConsoleConfig
from main import run_status_refresh

logger = logging.getLogger(__name__)

JOB_ID = 'status_refresh'


class StatusRefreshScheduler:
    def __init__(self, config: ConsoleConfig, job=run_status_refresh, scheduler: BackgroundScheduler = None):
        self.config = config
        self.job = job
        self.scheduler = scheduler or BackgroundScheduler(timezone=config.timezone)
        self.last_log = []

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def run_once(self):
        """Runs one refresh. Errors are logged so the timer keeps firing."""
        try:
            self.last_log = self.job(config=self.config)
        except Exception:
            logger.exception("Status refresh run failed")
            return []
        for line in self.last_log:
            logger.debug(line)
        return self.last_log

    def start(self):
        if self.running:
            return
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.config.refresh_interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Status refresh scheduled every %ss", self.config.refresh_interval_seconds)

    def stop(self):
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        logger.info("Status refresh scheduler stopped")


@st.cache_resource
def get_refresh_scheduler(config: ConsoleConfig) -> StatusRefreshScheduler:
    """One running scheduler per server process, shared by every session."""
    refresh_scheduler = StatusRefreshScheduler(config)
    refresh_scheduler.start()
    return refresh_scheduler
