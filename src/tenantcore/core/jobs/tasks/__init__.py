"""Background job tasks.

Each task module defines async functions that are registered in the
worker.
"""

from tenantcore.core.jobs.tasks.renewal import run_subscription_renewal


__all__ = [
    "run_subscription_renewal",
]
