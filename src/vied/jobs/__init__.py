"""Background export jobs for the Vied API."""

from vied.jobs.manager import ExportJobManager
from vied.jobs.models import ExportJob, JobStatus

__all__ = ["ExportJob", "ExportJobManager", "JobStatus"]
