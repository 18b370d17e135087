"""Tests for helm_deploy.overrides.flags."""

from __future__ import annotations

from helm_deploy.overrides.flags import (
    OverrideKind,
    resolve_flags,
    split_flags,
    strip_override_flags,
)


# ── TestSplitFlags ───────────────────────────────────────────────────────


class TestSplitFlags:
    def test_none(self):
        assert split_flags(None) == []

    def test_string_uses_shell_rules(self):
        assert split_flags("--set 'a=b c' -f x.yaml") == ["--set", "a=b c", "-f", "x.yaml"]

    def test_sequence_copied(self):
        tokens = ["--namespace", "onap"]
        out = split_flags(tokens)
        assert out == tokens
        assert out is not tokens


# ── TestResolveFlags ─────────────────────────────────────────────────────


class TestResolveFlags:
    def test_namespace_and_values(self):
        r = resolve_flags("--namespace onap -f overrides.yaml")
        assert r.passthrough == ["--namespace", "onap"]
        assert r.namespace == "onap"
        assert len(r.overrides) == 1
        assert r.overrides[0].kind == OverrideKind.FILE
        assert r.overrides[0].value == "overrides.yaml"

    def test_all_override_kinds(self):
        r = resolve_flags(
            ["--values", "a.yaml", "--set", "x=1", "--set-string", "y=2", "--wait"]
        )
        assert [o.kind for o in r.overrides] == [
            OverrideKind.FILE,
            OverrideKind.SET,
            OverrideKind.SET_STRING,
        ]
        assert r.passthrough == ["--wait"]

    def test_set_does_not_match_set_string(self):
        r = resolve_flags(["--set-string", "a=b"])
        assert r.overrides[0].flag == "--set-string"
        assert r.overrides[0].kind == OverrideKind.SET_STRING

    def test_f_does_not_match_force(self):
        r = resolve_flags(["--force", "--timeout", "900"])
        assert r.overrides == []
        assert r.passthrough == ["--force", "--timeout", "900"]

    def test_inline_equals_form(self):
        r = resolve_flags(["--set=foo=bar", "--values=v.yaml"])
        assert [(o.flag, o.value) for o in r.overrides] == [
            ("--set", "foo=bar"),
            ("--values", "v.yaml"),
        ]
        assert r.passthrough == []

    def test_shorthand_attached_value(self):
        r = resolve_flags(["-f=values.yaml", "-fother.yaml", "--namespace", "onap"])
        assert [(o.flag, o.value) for o in r.overrides] == [
            ("-f", "values.yaml"),
            ("-f", "other.yaml"),
        ]
        assert r.passthrough == ["--namespace", "onap"]

    def test_long_name_prefix_not_matched(self):
        r = resolve_flags(["--setx=foo", "--values-dir=d"])
        assert r.overrides == []

    def test_order_preserved(self):
        r = resolve_flags(["--set", "foo=bar", "--set", "foo=baz"])
        assert [o.value for o in r.overrides] == ["foo=bar", "foo=baz"]

    def test_original_untouched(self):
        flags = ["--namespace", "onap", "--set", "foo=bar"]
        r = resolve_flags(flags)
        assert r.original == flags

    def test_dangling_flag_passes_through(self):
        r = resolve_flags(["--namespace", "onap", "--set"])
        assert r.overrides == []
        assert r.passthrough == ["--namespace", "onap", "--set"]

    def test_version_detected(self):
        r = resolve_flags(["--version=2.0.0"])
        assert r.version == "2.0.0"
        assert r.passthrough == ["--version=2.0.0"]

    def test_empty(self):
        r = resolve_flags("")
        assert r.original == []
        assert r.namespace is None
        assert r.passthrough_string == ""

    def test_as_args(self):
        r = resolve_flags(["-f", "x.yaml"])
        assert r.overrides[0].as_args() == ["-f", "x.yaml"]


# ── TestStripOverrideFlags ───────────────────────────────────────────────


class TestStripOverrideFlags:
    def test_removes_value_pairs(self):
        assert strip_override_flags("--namespace onap -f a.yaml --set x=1") == "--namespace onap"

    def test_quotes_preserved(self):
        assert strip_override_flags("--description 'two words'") == "--description 'two words'"
