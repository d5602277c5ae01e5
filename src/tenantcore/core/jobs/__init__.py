"""Background job processing with ARQ.

The renewal sweep runs as an ARQ cron job in the worker, or in-process
inside the web app when ``RENEWAL_IN_PROCESS`` is set.
"""

from tenantcore.core.jobs.registry import (
    close_arq_pool,
    enqueue,
    get_arq_pool,
    init_arq_pool,
)


__all__ = [
    "close_arq_pool",
    "enqueue",
    "get_arq_pool",
    "init_arq_pool",
]
