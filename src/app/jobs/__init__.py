from .session_cleanup_job import JobHealth, JobStatus, SessionCleanupJob

__all__ = ["JobHealth", "JobStatus", "SessionCleanupJob"]
