import asyncio

import pytest

from conftest import FakeGit, FakeMaterializer, read_tree
from auth0_export import RenderError, TenantConfigDumper
from branch_sync.synchronizer import BranchSynchronizer, CycleState
from branch_sync.tenants import TenantDescriptor

COMMIT_MESSAGE = "Updated Auth0 tenant config"


def tenant(branch, domain=None, name=None):
    return TenantDescriptor(
        branch_name=branch,
        domain=domain or f"{branch}.auth0.com",
        client_id=f"{branch}-id",
        client_secret=f"{branch}-secret",
        tenant_name=name or branch,
    )


def sync(materializer, **kwargs):
    return BranchSynchronizer(materializer, commit_message=COMMIT_MESSAGE, **kwargs)


def test_missing_branch_is_created_as_orphan_and_pushed(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({"x.auth": {"tenant.json": '{"friendly_name": "prod"}\n'}})

    summary = asyncio.run(sync(materializer).run(session, [tenant("prod", "x.auth")]))

    outcome = summary.outcomes[0]
    assert outcome.state is CycleState.COMMITTED
    assert outcome.changed and outcome.created_branch and outcome.ok
    assert outcome.commit == "sha1"
    assert ("ls-remote", "--heads", "origin", "refs/heads/prod") in git.calls
    assert ("checkout", "--orphan", "prod") in git.calls
    assert ("commit", "--quiet", "-m", COMMIT_MESSAGE) in git.calls
    assert git.calls[-1] == ("push", "--set-upstream", "origin", "prod")
    assert git.remote["prod"] == {"tenant.json": b'{"friendly_name": "prod"}\n'}


def test_up_to_date_branch_is_switched_and_skipped(make_session):
    snapshot = {"tenant.json": b'{"friendly_name": "prod"}\n'}
    git = FakeGit(remote={"prod": snapshot})
    session = make_session(git)
    materializer = FakeMaterializer({"x.auth": {"tenant.json": '{"friendly_name": "prod"}\n'}})

    summary = asyncio.run(sync(materializer).run(session, [tenant("prod", "x.auth")]))

    outcome = summary.outcomes[0]
    assert outcome.state is CycleState.NO_OP_SKIPPED
    assert not outcome.changed and not outcome.created_branch
    assert ("switch", "--discard-changes", "prod") in git.calls
    assert "commit" not in git.commands()
    assert "push" not in git.commands()
    assert summary.skipped == [outcome]


def test_second_run_with_unchanged_config_is_a_no_op(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({
        "a.auth": {"clients/app.json": "{}\n"},
        "b.auth": {"clients/other.json": "{}\n"},
    })
    tenants = [tenant("a", "a.auth"), tenant("b", "b.auth")]
    synchronizer = sync(materializer)

    first = asyncio.run(synchronizer.run(session, tenants))
    second = asyncio.run(synchronizer.run(session, tenants))

    assert [o.state for o in first.outcomes] == [CycleState.COMMITTED, CycleState.COMMITTED]
    assert [o.state for o in second.outcomes] == [CycleState.NO_OP_SKIPPED, CycleState.NO_OP_SKIPPED]
    assert git.commits == 2


def test_branches_do_not_share_content(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({
        "a.auth": {"clients/a.json": "{}\n"},
        "b.auth": {"clients/b.json": "{}\n"},
    })

    asyncio.run(sync(materializer).run(session, [tenant("a", "a.auth"), tenant("b", "b.auth")]))

    assert set(git.remote["a"]) == {"clients/a.json"}
    assert set(git.remote["b"]) == {"clients/b.json"}


def test_stale_tree_content_is_cleared_before_rendering(make_session):
    git = FakeGit()
    session = make_session(git)
    (session.path / "leftover").mkdir()
    (session.path / "leftover" / "old.json").write_text("{}")
    (session.path / ".hidden").write_text("x")
    materializer = FakeMaterializer({"x.auth": {"tenant.json": "{}\n"}})

    asyncio.run(sync(materializer).run(session, [tenant("prod", "x.auth")]))

    assert read_tree(session.path) == {"tenant.json": b"{}\n"}
    assert (session.path / ".git").is_dir()


def test_any_differing_byte_is_detected(make_session):
    git = FakeGit(remote={"prod": {"tenant.json": b'{"a": 1}\n'}})
    session = make_session(git)
    materializer = FakeMaterializer({"x.auth": {"tenant.json": '{"a": 2}\n'}})

    summary = asyncio.run(sync(materializer).run(session, [tenant("prod", "x.auth")]))

    assert summary.outcomes[0].changed
    assert git.remote["prod"] == {"tenant.json": b'{"a": 2}\n'}


def test_shared_branch_second_tenant_builds_on_the_first(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({
        "one.auth": {"tenant.json": '{"n": 1}\n'},
        "two.auth": {"tenant.json": '{"n": 2}\n'},
    })
    tenants = [tenant("shared", "one.auth", "one"), tenant("shared", "two.auth", "two")]

    summary = asyncio.run(sync(materializer).run(session, tenants))

    first, second = summary.outcomes
    assert first.created_branch and first.committed
    # The first tenant's push made the branch visible on the remote
    assert not second.created_branch and second.committed
    assert git.remote["shared"] == {"tenant.json": b'{"n": 2}\n'}


def test_tenant_failure_is_recorded_and_loop_continues(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({"ok.auth": {"tenant.json": "{}\n"}}, failing={"bad.auth"})

    summary = asyncio.run(sync(materializer).run(session, [tenant("bad", "bad.auth"), tenant("ok", "ok.auth")]))

    bad, ok = summary.outcomes
    assert bad.state is CycleState.FAILED
    assert isinstance(bad.error, RenderError)
    assert not bad.ok
    assert ok.state is CycleState.COMMITTED
    assert summary.as_dict() == {
        "tenants": 2,
        "committed": ["ok"],
        "unchanged": [],
        "failed": {"bad": "upstream API failure for bad.auth"},
    }


def test_fail_fast_aborts_remaining_tenants(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer({"ok.auth": {"tenant.json": "{}\n"}}, failing={"bad.auth"})

    with pytest.raises(RenderError):
        asyncio.run(sync(materializer, fail_fast=True).run(session, [tenant("bad", "bad.auth"), tenant("ok", "ok.auth")]))

    assert [options.domain for options in materializer.calls] == ["bad.auth"]
    assert "ok" not in git.remote


def test_push_failure_keeps_change_flag(make_session):
    git = FakeGit(fail_on="push")
    session = make_session(git)
    materializer = FakeMaterializer({"x.auth": {"tenant.json": "{}\n"}})

    summary = asyncio.run(sync(materializer).run(session, [tenant("prod", "x.auth")]))

    outcome = summary.outcomes[0]
    assert outcome.state is CycleState.FAILED
    assert outcome.changed
    assert outcome.error.command == ["push", "--set-upstream", "origin", "prod"]


def test_materializer_receives_fixed_policy_and_tenant_keyword(make_session):
    git = FakeGit()
    session = make_session(git)
    materializer = FakeMaterializer()

    asyncio.run(
        sync(materializer, keyword_replacements={"ENV": "dev"}).run(session, [tenant("prod", "x.auth", "acme-prod")])
    )

    options = materializer.calls[0]
    assert options.domain == "x.auth"
    assert options.client_id == "prod-id"
    assert options.client_secret == "prod-secret"
    assert options.keyword_replacements == {"ENV": "dev", "TENANT_NAME": "acme-prod"}
    assert options.allow_delete is False
    assert options.excluded == []


def test_empty_output_on_new_branch_commits_nothing(make_session):
    git = FakeGit()
    session = make_session(git)

    summary = asyncio.run(sync(FakeMaterializer()).run(session, [tenant("prod", "nothing.auth")]))

    assert summary.outcomes[0].state is CycleState.NO_OP_SKIPPED
    assert "commit" not in git.commands()


def test_empty_tenant_list_is_a_clean_no_op(make_session):
    git = FakeGit()
    session = make_session(git)

    summary = asyncio.run(sync(FakeMaterializer()).run(session, []))

    assert summary.outcomes == []
    assert git.calls == []


class RoutingMaterializer:
    """Sends credential-less tenants to the real dumper and the rest to a fake."""

    def __init__(self, fake):
        self.fake = fake
        self.dumper = TenantConfigDumper()

    async def render(self, output_dir, options):
        if not options.client_id:
            return await self.dumper.render(output_dir, options)
        return await self.fake.render(output_dir, options)


def test_tenant_without_credentials_fails_only_its_own_cycle(make_session):
    git = FakeGit()
    session = make_session(git)
    fake = FakeMaterializer({"ok.auth": {"tenant.json": "{}\n"}})
    no_credentials = TenantDescriptor("bare", "bare.auth", "bare")

    summary = asyncio.run(sync(RoutingMaterializer(fake)).run(session, [no_credentials, tenant("ok", "ok.auth")]))

    failed, committed = summary.outcomes
    assert failed.state is CycleState.FAILED
    assert isinstance(failed.error, RenderError)
    assert "No client credentials configured for bare.auth" in str(failed.error)
    assert committed.state is CycleState.COMMITTED
    assert "bare" not in git.remote
