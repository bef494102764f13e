"""High-level run orchestration: bootstrap, tenant fetch, then one cycle per tenant."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .config import SyncSettings
from .git import GitRunner
from .repository import RunnerFactory, bootstrap_repository
from .synchronizer import BranchSynchronizer, RunSummary
from .tenants import load_tenants

logger = logging.getLogger(__name__)


def log_full_error(error: BaseException) -> None:
    """Log an error with its stack trace when one is available."""
    if error.__traceback__ is not None:
        logger.error(f"{type(error).__name__}: {error}", exc_info=error)
    else:
        logger.error(repr(error))


async def _run_sync_async(
    settings: SyncSettings,
    secret_provider,
    materializer,
    runner_factory: RunnerFactory = GitRunner,
) -> RunSummary:
    session = await bootstrap_repository(settings, secret_provider, runner_factory)

    tenants = load_tenants(secret_provider, settings.tenants_secret)
    if not tenants:
        logger.info("Tenant list is empty. Nothing to synchronize.")

    synchronizer = BranchSynchronizer(
        materializer,
        commit_message=settings.git.commit_message,
        keyword_replacements=settings.keyword_replacements,
        fail_fast=settings.fail_fast,
    )
    summary = await synchronizer.run(session, tenants)
    logger.info(f"Synchronization summary: {summary.as_dict()}")
    return summary


def run_sync(
    settings: SyncSettings,
    secret_provider,
    materializer,
    runner_factory: RunnerFactory = GitRunner,
) -> Optional[RunSummary]:
    """Run one synchronization. Fatal errors are logged, never raised."""
    try:
        return asyncio.run(
            _run_sync_async(settings, secret_provider, materializer, runner_factory=runner_factory)
        )
    except Exception as e:
        logger.info("Failed to update tenant configs to the repository")
        log_full_error(e)
        return None
