"""End-to-end tests for the ProvenanceMiner facade."""

import pytest

from git_provenance import ProvenanceMiner, mine
from git_provenance.activity import ActivityType
from git_provenance.delegation import DelegationReason
from git_provenance.exceptions import RepoNotFoundError
from git_provenance.identity import AgentType
from git_provenance.refactoring import RefactoringType

UTIL = """\
defmodule MyApp.Util do
  def {name}(value) do
    value
    |> String.trim()
    |> String.downcase()
  end
end
"""

MIX_EXS = 'defmodule MyApp.MixProject do\n  def project, do: [app: :my_app, version: "0.1.0"]\nend\n'

BOT_EMAIL = "49699333+dependabot[bot]@users.noreply.github.com"


@pytest.fixture
def project(git_repo):
    git_repo.write("mix.exs", MIX_EXS)
    git_repo.write("CODEOWNERS", "* @core\n")
    git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper"))
    git_repo.commit("feat: initial project", author="Alice", email="alice@example.com")
    git_repo.tag("v0.1.0")
    git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper_v2"))
    git_repo.commit(
        "refactor: rename helper\n\nReviewed-by: Bob <bob@example.com>",
        author="Alice",
        email="alice@example.com",
    )
    git_repo.write("mix.lock", "%{}\n")
    git_repo.commit("chore(deps): add lockfile", author="dependabot[bot]", email=BOT_EMAIL)
    return git_repo


class TestProvenanceMiner:
    def test_not_a_repository(self, not_a_repo):
        with pytest.raises(RepoNotFoundError):
            ProvenanceMiner(not_a_repo)

    def test_repr(self, project):
        miner = ProvenanceMiner(project.root)
        assert repr(miner) == f"ProvenanceMiner({str(miner.repo_root)!r})"

    def test_individual_queries(self, project):
        miner = ProvenanceMiner(project.root)
        assert miner.commit().author_email == BOT_EMAIL
        assert len(miner.commits(limit=2)) == 2
        assert miner.blame("lib/my_app/util.ex").line_count == 7
        assert [r.version for r in miner.releases()] == ["0.1.0"]
        assert miner.snapshot().modules == ("MyApp.Util",)
        assert len(miner.module_versions("MyApp.Util")) == 2
        assert miner.deprecations("HEAD") == []
        changes = miner.features_and_fixes(miner.commits())
        assert [f.name for f in changes.features] == ["initial project"]
        assert changes.bugfixes == ()


class TestMine:
    def test_report(self, project):
        report = ProvenanceMiner(project.root).mine(limit=10, include_snapshot=True)

        assert report.commit_count == 3
        assert [a.type for a in report.activities][1:] == [ActivityType.REFACTOR, ActivityType.FEATURE]
        assert {d.email for d in report.developers} == {"alice@example.com", BOT_EMAIL}
        assert {a.agent_type for a in report.agents} == {AgentType.DEVELOPER, AgentType.BOT}
        assert len(report.associations) == 6
        assert len(report.attributions) == 3
        alice = next(a for a in report.agents if a.email == "alice@example.com")
        assert sorted(e.split("@")[0] for e in alice.attributed_entities) == [
            "MyApp.MixProject",
            "MyApp.Util",
            "MyApp.Util",
        ]
        assert sorted(d.reason.value for d in report.delegations) == sorted(
            [
                DelegationReason.CODE_OWNERSHIP.value,
                DelegationReason.CODE_OWNERSHIP.value,
                DelegationReason.CODE_OWNERSHIP.value,
                DelegationReason.REVIEW_APPROVAL.value,
                DelegationReason.BOT_CONFIG.value,
            ]
        )
        assert [r.type for r in report.refactorings] == [RefactoringType.RENAME_FUNCTION]
        assert [r.version for r in report.releases] == ["0.1.0"]
        assert report.snapshot.project_name == "my_app"
        assert report.failures == {}

    def test_optional_parts_skipped(self, project):
        report = ProvenanceMiner(project.root).mine(
            limit=1, include_scope=False, include_refactorings=False, include_attributions=False
        )
        assert report.commit_count == 1
        assert report.refactorings == ()
        assert report.attributions == ()
        assert report.snapshot is None
        assert report.activities[0].scope is None

    def test_mine_function(self, project, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        report = mine(str(project.root), limit=2, workers=1, quiet=True)
        assert report.commit_count == 2
        assert report.repo_root == str(ProvenanceMiner(project.root).repo_root)
