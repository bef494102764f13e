"""Branch synchronizer: one reconciliation cycle per tenant, strictly in order."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from auth0_export import MaterializeOptions

from .repository import RepositorySession
from .tenants import TenantDescriptor

logger = logging.getLogger(__name__)

REMOTE = "origin"


class CycleState(enum.Enum):
    BRANCH_RESOLVING = "branch_resolving"
    TREE_CLEARED = "tree_cleared"
    CONFIG_MATERIALIZED = "config_materialized"
    DIFF_CHECKED = "diff_checked"
    COMMITTED = "committed"
    NO_OP_SKIPPED = "no_op_skipped"
    FAILED = "failed"


@dataclass
class SyncOutcome:
    tenant_name: str
    branch_name: str
    changed: bool = False
    error: Optional[BaseException] = None
    state: CycleState = CycleState.BRANCH_RESOLVING
    created_branch: bool = False
    commit: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def committed(self) -> bool:
        return self.state is CycleState.COMMITTED


@dataclass
class RunSummary:
    outcomes: List[SyncOutcome] = field(default_factory=list)

    @property
    def committed(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.state is CycleState.COMMITTED]

    @property
    def skipped(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.state is CycleState.NO_OP_SKIPPED]

    @property
    def failed(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.state is CycleState.FAILED]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tenants": len(self.outcomes),
            "committed": [o.branch_name for o in self.committed],
            "unchanged": [o.branch_name for o in self.skipped],
            "failed": {o.branch_name: str(o.error) for o in self.failed},
        }


class BranchSynchronizer:
    """
    Reconciles each tenant's branch with its live configuration and commits
    only on real change.

    All cycles of a run share one RepositorySession, so they must never
    overlap: branch switches and tree clears are destructive.
    """

    def __init__(
        self,
        materializer,
        commit_message: str,
        keyword_replacements: Optional[Dict[str, str]] = None,
        fail_fast: bool = False,
    ):
        self.materializer = materializer
        self.commit_message = commit_message
        self.keyword_replacements = dict(keyword_replacements or {})
        self.fail_fast = fail_fast

    def materialize_options(self, tenant: TenantDescriptor) -> MaterializeOptions:
        replacements = dict(self.keyword_replacements)
        replacements["TENANT_NAME"] = tenant.tenant_name
        return MaterializeOptions(
            domain=tenant.domain,
            client_id=tenant.client_id,
            client_secret=tenant.client_secret,
            keyword_replacements=replacements,
            allow_delete=False,
            excluded=[],
        )

    async def remote_branch_exists(self, session: RepositorySession, branch: str) -> bool:
        # Ask the remote; local refs may be stale after earlier cycles
        output = await session.run_git("ls-remote", "--heads", REMOTE, f"refs/heads/{branch}")
        return bool(output.strip())

    async def resolve_branch(self, session: RepositorySession, branch: str) -> bool:
        """Check out ``branch``, creating it as an orphan if the remote lacks it.

        Returns True when the branch was created.
        """
        if await self.remote_branch_exists(session, branch):
            logger.info(f"Switching to branch {branch}")
            await session.run_git("switch", "--discard-changes", branch)
            return False

        logger.info(f"Branch {branch} does not exist on {REMOTE}; creating orphan branch")
        await session.run_git("checkout", "--orphan", branch)
        await session.run_git("rm", "-r", "--cached", "--quiet", "--ignore-unmatch", ".")
        return True

    async def changes_exist(self, session: RepositorySession) -> bool:
        logger.info("Checking if changes exist in tenant config")
        status = await session.run_git("status", "--porcelain")
        return bool(status.strip())

    async def commit_and_push(self, session: RepositorySession, branch: str) -> str:
        logger.info("Staging changes")
        await session.run_git("add", "--all")
        logger.info("Committing changes")
        await session.run_git("commit", "--quiet", "-m", self.commit_message)
        commit = await session.run_git("rev-parse", "HEAD")
        logger.info("Pushing changes")
        await session.run_git("push", "--set-upstream", REMOTE, branch)
        return commit.strip()

    async def reconcile(self, session: RepositorySession, tenant: TenantDescriptor) -> SyncOutcome:
        """Run one cycle for ``tenant``; any failure propagates."""
        outcome = SyncOutcome(tenant_name=tenant.tenant_name, branch_name=tenant.branch_name)
        await self._reconcile(session, tenant, outcome)
        return outcome

    async def _reconcile(self, session: RepositorySession, tenant: TenantDescriptor, outcome: SyncOutcome) -> None:
        outcome.created_branch = await self.resolve_branch(session, tenant.branch_name)

        session.clear_working_tree()
        outcome.state = CycleState.TREE_CLEARED

        logger.info(f"Downloading tenant config of {tenant.tenant_name}")
        await self.materializer.render(str(session.path), self.materialize_options(tenant))
        outcome.state = CycleState.CONFIG_MATERIALIZED

        outcome.changed = await self.changes_exist(session)
        outcome.state = CycleState.DIFF_CHECKED

        if not outcome.changed:
            logger.info(f"No changes exist in tenant config of {tenant.tenant_name}. Skipping commit and push.")
            outcome.state = CycleState.NO_OP_SKIPPED
            return

        logger.info(f"Changes exist in tenant config of {tenant.tenant_name}")
        outcome.commit = await self.commit_and_push(session, tenant.branch_name)
        outcome.state = CycleState.COMMITTED
        logger.info(f"Successfully updated tenant config of {tenant.tenant_name} on branch {tenant.branch_name}")

    async def run(self, session: RepositorySession, tenants: Iterable[TenantDescriptor]) -> RunSummary:
        summary = RunSummary()
        for tenant in tenants:
            logger.info(f"Reconciling tenant {tenant.tenant_name} on branch {tenant.branch_name}")
            outcome = SyncOutcome(tenant_name=tenant.tenant_name, branch_name=tenant.branch_name)
            summary.outcomes.append(outcome)
            try:
                await self._reconcile(session, tenant, outcome)
            except Exception as e:
                if self.fail_fast:
                    raise
                logger.error(
                    f"Failed to update tenant config of {tenant.tenant_name} (last state: {outcome.state.value})",
                    exc_info=e,
                )
                outcome.error = e
                outcome.state = CycleState.FAILED
        return summary
