"""Tests for helm_deploy.workflow.reconcile and helm_deploy.workflow.context."""

from __future__ import annotations

from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch

from helm_deploy.chart.workspace import WorkingSet
from helm_deploy.config.models import DeployConfig
from helm_deploy.overrides.enablement import EnablementTable
from helm_deploy.overrides.flags import resolve_flags
from helm_deploy.overrides.partition import PartitionResult
from helm_deploy.state.models import DesiredState, Outcome, TargetKind
from helm_deploy.workflow.context import RunContext, resolve_scope
from helm_deploy.workflow.reconcile import (
    apply_release,
    matching_releases,
    plan_releases,
    reconcile,
    remove_releases,
)


# ── helpers ──────────────────────────────────────────────────────────────


def _completed(stdout: str = "", stderr: str = "", rc: int = 0):
    cp = MagicMock()
    cp.returncode = rc
    cp.stdout = stdout
    cp.stderr = stderr
    return cp


class FakeHelm:
    """Records helm invocations and answers ``ls -q`` from a release list."""

    def __init__(self, deployed=(), fail_on=(), list_rc=0):
        self.deployed: List[str] = list(deployed)
        self.fail_on = set(fail_on)
        self.list_rc = list_rc
        self.calls: List[List[str]] = []

    def __call__(self, cmd, **_kwargs):
        args = cmd[1:]
        self.calls.append(args)
        if args[:2] == ["ls", "-q"]:
            if self.list_rc:
                return _completed(stderr="Error: could not find tiller", rc=self.list_rc)
            return _completed(stdout="\n".join(self.deployed))
        if args[0] == "upgrade":
            name = args[2]
            if name in self.fail_on:
                return _completed(stderr=f"Error: {name} broke", rc=1)
            if name not in self.deployed:
                self.deployed.append(name)
            return _completed(stdout=f"Release \"{name}\" has been upgraded.")
        if args[0] == "del":
            name = args[1]
            if name in self.fail_on:
                return _completed(stderr=f"Error: {name} stuck", rc=1)
            self.deployed.remove(name)
            return _completed(stdout=f"release \"{name}\" deleted")
        return _completed()

    def commands(self, verb: str) -> List[List[str]]:
        return [c for c in self.calls if c[0] == verb]


def _working_set(tmp_path: Path, *subcharts: str) -> WorkingSet:
    ws = WorkingSet(cache_dir=tmp_path, chart_name="onap")
    ws.chart_dir.mkdir(parents=True)
    for name in subcharts:
        ws.subchart_dir(name).mkdir(parents=True)
    return ws


def _context(tmp_path: Path, enabled: dict, *, scoped=None, flags="--namespace onap") -> RunContext:
    ws = _working_set(tmp_path, *enabled)
    partition = PartitionResult(
        global_overrides=ws.global_overrides_path,
        subchart_overrides={
            name: ws.subchart_dir(name) / "subchart-overrides.yaml" for name in enabled
        },
    )
    values = {f"{name}.enabled": value for name, value in enabled.items() if value is not None}
    return RunContext(
        release="demo",
        chart="local/onap",
        config=DeployConfig(cache_dir=tmp_path),
        flags=resolve_flags(flags),
        working_set=ws,
        scoped_subchart=scoped,
        partition=partition,
        enablement=EnablementTable(values=values),
    )


# ── TestResolveScope ─────────────────────────────────────────────────────


class TestResolveScope:
    def test_known_subchart(self, tmp_path: Path):
        ws = _working_set(tmp_path, "db", "log")
        assert resolve_scope("myrelease-db", ws) == ("myrelease", "db")

    def test_unknown_subchart(self, tmp_path: Path):
        ws = _working_set(tmp_path, "db")
        assert resolve_scope("myrelease-unknown", ws) == ("myrelease-unknown", None)

    def test_plain_release(self, tmp_path: Path):
        ws = _working_set(tmp_path, "db")
        assert resolve_scope("demo", ws) == ("demo", None)

    def test_hyphenated_release(self, tmp_path: Path):
        ws = _working_set(tmp_path, "db")
        assert resolve_scope("my-release-db", ws) == ("my-release", "db")

    def test_hyphenated_subchart(self, tmp_path: Path):
        ws = _working_set(tmp_path, "so-db")
        assert resolve_scope("demo-so-db", ws) == ("demo", "so-db")

    def test_leading_hyphen_ignored(self, tmp_path: Path):
        ws = _working_set(tmp_path, "db")
        assert resolve_scope("-db", ws) == ("-db", None)


# ── TestPlanReleases ─────────────────────────────────────────────────────


class TestPlanReleases:
    def test_parent_first(self, tmp_path: Path):
        ctx = _context(tmp_path, {"log": "false", "vid": "true"})
        records = plan_releases(ctx)
        assert [r.name for r in records] == ["demo", "demo-log", "demo-vid"]
        assert records[0].kind == TargetKind.PARENT
        assert records[0].value_files == [str(ctx.working_set.computed_overrides_path)]

    def test_desired_state_from_enablement(self, tmp_path: Path):
        ctx = _context(tmp_path, {"log": "false", "vid": "true", "db": None})
        desired = {r.name: r.desired for r in plan_releases(ctx)}
        assert desired["demo-vid"] == DesiredState.PRESENT
        assert desired["demo-log"] == DesiredState.ABSENT
        assert desired["demo-db"] == DesiredState.ABSENT

    def test_subchart_value_files_order(self, tmp_path: Path):
        ctx = _context(tmp_path, {"vid": "true"})
        vid = plan_releases(ctx)[1]
        assert vid.value_files == [
            str(ctx.working_set.global_overrides_path),
            str(ctx.working_set.subchart_dir("vid") / "subchart-overrides.yaml"),
        ]

    def test_missing_override_files_omitted(self, tmp_path: Path):
        ctx = _context(tmp_path, {"vid": "true"})
        ctx.partition = PartitionResult()
        assert plan_releases(ctx)[1].value_files == []

    def test_scoped(self, tmp_path: Path):
        ctx = _context(tmp_path, {"db": "true", "log": "true"}, scoped="db")
        assert [r.name for r in plan_releases(ctx)] == ["demo-db"]


# ── TestMatchingReleases ─────────────────────────────────────────────────


class TestMatchingReleases:
    def test_contains(self):
        deployed = ["demo", "demo-so", "demo-so-old", "other-so"]
        assert matching_releases(deployed, "demo-so") == ["demo-so", "demo-so-old"]

    def test_exclude(self):
        deployed = ["demo-so", "demo-so-db"]
        assert matching_releases(deployed, "demo-so", exclude={"demo-so-db"}) == ["demo-so"]


# ── TestRemoveReleases ───────────────────────────────────────────────────


class TestRemoveReleases:
    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_reverse_order(self, mock_run):
        fake = FakeHelm(deployed=["demo-log", "demo-log-2"])
        mock_run.side_effect = fake
        removed, failed, entries = remove_releases(["demo-log", "demo-log-2"])
        assert removed == ["demo-log-2", "demo-log"]
        assert failed == []
        assert fake.commands("del") == [
            ["del", "demo-log-2", "--purge"],
            ["del", "demo-log", "--purge"],
        ]
        assert entries[0] == "$ helm del demo-log-2 --purge"

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_continues_after_failure(self, mock_run):
        fake = FakeHelm(deployed=["a", "b"], fail_on={"b"})
        mock_run.side_effect = fake
        removed, failed, _ = remove_releases(["a", "b"])
        assert removed == ["a"]
        assert failed == ["b"]


# ── TestApplyRelease ─────────────────────────────────────────────────────


class TestApplyRelease:
    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_present_success(self, mock_run, tmp_path: Path):
        fake = FakeHelm()
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"vid": "true"})
        record = apply_release(plan_releases(ctx)[1], ctx)
        assert record.outcome == Outcome.SUCCEEDED
        cmd = fake.commands("upgrade")[0]
        assert cmd[:4] == ["upgrade", "-i", "demo-vid", str(ctx.working_set.subchart_dir("vid"))]
        assert cmd[-2:] == ["--namespace", "onap"]
        log = Path(record.log_path).read_text(encoding="utf-8")
        assert "upgrade -i demo-vid" in log

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_present_failure(self, mock_run, tmp_path: Path):
        mock_run.side_effect = FakeHelm(fail_on={"demo-vid"})
        ctx = _context(tmp_path, {"vid": "true"})
        record = apply_release(plan_releases(ctx)[1], ctx)
        assert record.outcome == Outcome.FAILED
        assert "demo-vid broke" in record.error
        assert "demo-vid broke" in Path(record.log_path).read_text(encoding="utf-8")

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_absent_not_deployed(self, mock_run, tmp_path: Path):
        fake = FakeHelm(deployed=["demo"])
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"log": "false"})
        record = apply_release(plan_releases(ctx)[1], ctx)
        assert record.outcome == Outcome.SUCCEEDED
        assert record.removed == []
        assert fake.commands("del") == []

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_absent_skips_sibling_releases(self, mock_run, tmp_path: Path):
        fake = FakeHelm(deployed=["demo", "demo-so", "demo-so-db", "demo-so-stale"])
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"so": "false", "so-db": "true"})
        so = [r for r in plan_releases(ctx) if r.name == "demo-so"][0]
        record = apply_release(so, ctx)
        assert record.removed == ["demo-so-stale", "demo-so"]
        assert "demo-so-db" in fake.deployed

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_absent_delete_failure(self, mock_run, tmp_path: Path):
        mock_run.side_effect = FakeHelm(deployed=["demo-log"], fail_on={"demo-log"})
        ctx = _context(tmp_path, {"log": "false"})
        record = apply_release(plan_releases(ctx)[1], ctx)
        assert record.outcome == Outcome.FAILED
        assert "delete failed" in record.error

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_absent_listing_failure(self, mock_run, tmp_path: Path):
        fake = FakeHelm(deployed=["demo-log"], list_rc=1)
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"log": "false"})
        record = apply_release(plan_releases(ctx)[1], ctx)
        assert record.outcome == Outcome.FAILED
        assert "could not find tiller" in record.error
        assert fake.commands("del") == []

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_hook_called(self, mock_run, tmp_path: Path):
        mock_run.side_effect = FakeHelm()
        ctx = _context(tmp_path, {"vid": "true"})
        seen = []
        apply_release(plan_releases(ctx)[0], ctx, on_complete=seen.append)
        assert [r.name for r in seen] == ["demo"]


# ── TestReconcile ────────────────────────────────────────────────────────


class TestReconcile:
    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_end_to_end_log_vid_db(self, mock_run, tmp_path: Path):
        fake = FakeHelm(deployed=["demo", "demo-log", "demo-db"])
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"log": "false", "vid": "true", "db": "true"})

        records = reconcile(ctx)

        assert [r.name for r in records] == ["demo", "demo-db", "demo-log", "demo-vid"]
        assert all(r.outcome == Outcome.SUCCEEDED for r in records)
        upgrades = [c[2] for c in fake.commands("upgrade")]
        assert upgrades == ["demo", "demo-db", "demo-vid"]
        assert fake.commands("del") == [["del", "demo-log", "--purge"]]
        assert sorted(fake.deployed) == ["demo", "demo-db", "demo-vid"]

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_no_fail_fast(self, mock_run, tmp_path: Path):
        fake = FakeHelm(fail_on={"demo", "demo-db"})
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"db": "true", "vid": "true"})

        records = reconcile(ctx)

        outcomes = {r.name: r.outcome for r in records}
        assert outcomes == {
            "demo": Outcome.FAILED,
            "demo-db": Outcome.FAILED,
            "demo-vid": Outcome.SUCCEEDED,
        }
        assert [c[2] for c in fake.commands("upgrade")] == ["demo", "demo-db", "demo-vid"]

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_rerun_upgrades_in_place(self, mock_run, tmp_path: Path):
        fake = FakeHelm()
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"vid": "true"})
        reconcile(ctx)
        reconcile(ctx)
        assert sorted(fake.deployed) == ["demo", "demo-vid"]
        assert all(c[:2] == ["upgrade", "-i"] for c in fake.commands("upgrade"))

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_scoped_update(self, mock_run, tmp_path: Path):
        fake = FakeHelm()
        mock_run.side_effect = fake
        ctx = _context(tmp_path, {"db": "true", "vid": "true"}, scoped="db")
        records = reconcile(ctx)
        assert [r.name for r in records] == ["demo-db"]
        assert [c[2] for c in fake.commands("upgrade")] == ["demo-db"]

    @patch("helm_deploy.helm.runner.subprocess.run")
    def test_custom_scheduler(self, mock_run, tmp_path: Path):
        mock_run.side_effect = FakeHelm()
        ctx = _context(tmp_path, {"vid": "true"})
        seen = []

        def _reversed(tasks):
            seen.append(len(tasks))
            return [task() for task in reversed(tasks)]

        records = reconcile(ctx, scheduler=_reversed)
        assert seen == [2]
        assert [r.name for r in records] == ["demo-vid", "demo"]
