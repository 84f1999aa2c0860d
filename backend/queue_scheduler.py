"""Periodic generation-queue dispatcher.

Uses the threading.Timer pattern: each tick runs one short dispatcher
invocation, then schedules the next one. The interval comes from
queue_poll_interval_seconds; 0 leaves the scheduler off and the queue is
then driven by POST /api/v1/generation-jobs/process.
"""

import logging
import threading

from config import get_settings

logger = logging.getLogger(__name__)

_scheduler = None
_scheduler_lock = threading.Lock()


def start_queue_scheduler(app, socketio):
    """Start the dispatcher scheduler if not already running.

    Args:
        app: Flask application instance.
        socketio: SocketIO instance for per-job status events.
    """
    global _scheduler
    with _scheduler_lock:
        if _scheduler is not None:
            return

        _scheduler = QueueScheduler(app, socketio)
        _scheduler.start()


def stop_queue_scheduler():
    """Stop the dispatcher scheduler if running."""
    global _scheduler
    with _scheduler_lock:
        if _scheduler:
            _scheduler.stop()
            _scheduler = None


class QueueScheduler:
    """Runs process_pending_jobs on a fixed interval."""

    def __init__(self, app, socketio):
        self._app = app
        self._socketio = socketio
        self._timer = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        interval = get_settings().queue_poll_interval_seconds
        if interval <= 0:
            logger.info("Generation queue scheduler disabled (interval=0)")
            return

        self._running = True
        self._schedule_next(interval)
        logger.info("Generation queue scheduler started (every %ds)", interval)

    def stop(self):
        self._running = False
        if self._timer:
            self._timer.cancel()
            self._timer = None
        logger.info("Generation queue scheduler stopped")

    def _schedule_next(self, interval: int):
        if not self._running:
            return

        self._timer = threading.Timer(interval, self._run_scheduled)
        self._timer.daemon = True
        self._timer.start()

    def _run_scheduled(self):
        """One dispatcher tick, then reschedule."""
        from generation_queue import process_pending_jobs

        with self._app.app_context():
            try:
                result = process_pending_jobs(app=self._app, socketio=self._socketio)
                if result["processed"]:
                    logger.info("Scheduled dispatch processed %d jobs", result["processed"])
            except Exception as e:
                logger.error("Scheduled dispatch failed: %s", e)

        # Re-read interval (settings may have been reloaded)
        interval = get_settings().queue_poll_interval_seconds
        if interval > 0:
            self._schedule_next(interval)
        else:
            logger.info("Generation queue scheduler disabled after run (interval set to 0)")
            self._running = False
