# services/__init__.py

from .pipeline import AuditPipeline
from .report_renderer import ReportRenderer
from .poller import JobQueuePoller

__all__ = ['AuditPipeline', 'ReportRenderer', 'JobQueuePoller']
