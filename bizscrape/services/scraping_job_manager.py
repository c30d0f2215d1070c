"""
Scraping Job Manager
Runs scrape pipelines in background threads and tracks their status and results
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Dict, Optional, Callable
import threading
from loguru import logger
import uuid

from bizscrape.config import Config
from bizscrape.models.scrape import ScrapeConfig, ProcessingConfig, ScrapingResult, ResultStatus
from bizscrape.services.cancellation import CancelToken


class JobStatus(str, Enum):
    """Job status enumeration"""
    PENDING = 'pending'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


FINISHED_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass
class ScrapeJob:
    """Background scrape run"""

    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING

    # Job Parameters
    config: ScrapeConfig = field(default_factory=ScrapeConfig)
    processing: Optional[ProcessingConfig] = None
    save: bool = False

    # Results
    result: Optional[ScrapingResult] = None
    saved_result_id: Optional[str] = None
    error: Optional[str] = None

    # Timing
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    cancel_token: CancelToken = field(default_factory=CancelToken, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def get_elapsed_time(self) -> float:
        """Get elapsed time in seconds"""
        start = self.started_at or self.created_at
        end = self.completed_at or datetime.utcnow()
        return (end - start).total_seconds()

    def to_dict(self, include_records: bool = True) -> Dict:
        """Convert to dictionary"""
        data = {
            'job_id': self.job_id,
            'status': self.status.value,
            'config': self.config.to_dict(),
            'processing': self.processing.to_dict() if self.processing else None,
            'save': self.save,
            'saved_result_id': self.saved_result_id,
            'error': self.error,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'elapsed_seconds': round(self.get_elapsed_time(), 2),
        }
        if self.result is not None:
            result = self.result.to_dict(include_raw=False)
            if not include_records:
                result.pop('processed_data', None)
            data['result'] = result
        return data


class ScrapeJobManager:
    """Manager for background scrape jobs"""

    def __init__(self, service=None, store=None):
        """
        Args:
            service: ScraperService used to execute runs
            store: Optional PersistenceGateway for jobs created with save=True
        """
        self.service = service
        self.store = store
        self.retention_hours = Config().JOB_RETENTION_HOURS
        self.jobs: Dict[str, ScrapeJob] = {}
        self.jobs_lock = threading.Lock()
        self._threads: Dict[str, threading.Thread] = {}

        logger.info("ScrapeJobManager initialized")

    def create_job(
        self,
        config: ScrapeConfig,
        processing: Optional[ProcessingConfig] = None,
        save: bool = False
    ) -> ScrapeJob:
        """Create a new pending job"""
        self.cleanup_old_jobs()
        job = ScrapeJob(config=config, processing=processing, save=save)

        with self.jobs_lock:
            self.jobs[job.job_id] = job

        logger.info(f"Created job: {job.job_id}")
        return job

    def get_job(self, job_id: str) -> Optional[ScrapeJob]:
        """Get job by ID"""
        return self.jobs.get(job_id)

    def list_jobs(self, status: Optional[JobStatus] = None, limit: int = 50) -> List[ScrapeJob]:
        """List jobs, newest first"""
        with self.jobs_lock:
            jobs = list(self.jobs.values())

        if status:
            jobs = [j for j in jobs if j.status == status]

        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return jobs[:limit]

    def _set_status(self, job: ScrapeJob, status: JobStatus) -> None:
        with self.jobs_lock:
            job.status = status

            if status == JobStatus.RUNNING and not job.started_at:
                job.started_at = datetime.utcnow()

            if status in FINISHED_STATUSES:
                job.completed_at = datetime.utcnow()

        logger.info(f"Job {job.job_id} status updated to {status.value}")

    def execute_job(self, job: ScrapeJob) -> ScrapeJob:
        """Run a job to completion on the calling thread"""
        if job.cancel_token.cancelled:
            self._set_status(job, JobStatus.CANCELLED)
            return job

        self._set_status(job, JobStatus.RUNNING)

        try:
            result = self.service.run_sync(job.config, job.processing, job.cancel_token)
        except Exception as e:
            logger.error(f"Job {job.job_id} crashed: {str(e)}")
            job.error = str(e)
            self._set_status(job, JobStatus.FAILED)
            return job

        job.result = result

        if job.cancel_token.cancelled:
            job.error = result.error or job.cancel_token.reason
            self._set_status(job, JobStatus.CANCELLED)
            return job

        if result.status == ResultStatus.ERROR:
            job.error = result.error
            self._set_status(job, JobStatus.FAILED)
            return job

        if job.save and self.store is not None:
            job.saved_result_id = self.service.save_run(self.store, job.config, job.processing, result)

        self._set_status(job, JobStatus.COMPLETED)
        return job

    def start_job(self, job_id: str, on_done: Optional[Callable[[ScrapeJob], None]] = None) -> bool:
        """Execute a pending job in a background thread"""
        job = self.get_job(job_id)
        if not job or job.status != JobStatus.PENDING:
            return False

        def worker():
            self.execute_job(job)
            with self.jobs_lock:
                self._threads.pop(job_id, None)
            if on_done:
                on_done(job)

        thread = threading.Thread(target=worker, name=f"scrape-job-{job_id[:8]}", daemon=True)
        with self.jobs_lock:
            self._threads[job_id] = thread
        thread.start()
        return True

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Optional[ScrapeJob]:
        """Block until a started job's thread has finished"""
        thread = self._threads.get(job_id)
        if thread is not None:
            thread.join(timeout)
        return self.get_job(job_id)

    def cancel_job(self, job_id: str, reason: str = 'Cancelled by operator') -> bool:
        """Request cooperative cancellation; False for unknown or finished jobs"""
        job = self.get_job(job_id)
        if not job or job.is_finished:
            return False

        job.cancel_token.cancel(reason)
        if job.status == JobStatus.PENDING:
            self._set_status(job, JobStatus.CANCELLED)

        logger.info(f"Cancellation requested for job {job_id}")
        return True

    def get_job_statistics(self) -> Dict:
        """Get statistics about all jobs"""
        with self.jobs_lock:
            jobs = list(self.jobs.values())

        stats = {
            'total_jobs': len(jobs),
            'by_status': {},
            'total_records': 0,
        }

        for job in jobs:
            status_key = job.status.value
            stats['by_status'][status_key] = stats['by_status'].get(status_key, 0) + 1
            if job.result is not None:
                stats['total_records'] += len(job.result.processed_data)

        return stats

    def cleanup_old_jobs(self, max_age_hours: Optional[float] = None) -> int:
        """
        Drop finished jobs older than the retention window

        Args:
            max_age_hours: Age limit, defaults to JOB_RETENTION_HOURS

        Returns:
            Number of jobs removed
        """
        hours = self.retention_hours if max_age_hours is None else max_age_hours
        cutoff = datetime.utcnow() - timedelta(hours=hours)

        with self.jobs_lock:
            expired = [
                job_id for job_id, job in self.jobs.items()
                if job.is_finished and job.completed_at and job.completed_at < cutoff
            ]
            for job_id in expired:
                del self.jobs[job_id]
                self._threads.pop(job_id, None)

        if expired:
            logger.info(f"Cleaned up {len(expired)} old jobs")
        return len(expired)
