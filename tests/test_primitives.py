"""Tests for the built-in template functions."""

import pytest

from conftest import FakeSelector, SpyClient, single_column
from influxkit.client import Series
from influxkit.templates.context import ResolutionContext, to_text
from influxkit.templates.primitives import PRIMITIVES, quote_identifier
from influxkit.templates.types import SelectionAborted, TemplateError


def make_context(selector=None, client=None, prompt=None, database="telegraf"):
    return ResolutionContext({}, client=client, selector=selector, prompt=prompt, database=database)


class TestToText:
    def test_values(self):
        assert to_text(None) == ""
        assert to_text(True) == "true"
        assert to_text(3) == "3"
        assert to_text(["a", "b"]) == "a,b"
        assert to_text(["a", "b"], sep=" | ") == "a | b"


class TestQuoteIdentifier:
    def test_plain(self):
        assert quote_identifier("cpu") == '"cpu"'

    def test_escapes_quotes(self):
        assert quote_identifier('we"ird') == '"we\\"ird"'


class TestSelect:
    def test_single(self):
        ctx = make_context(FakeSelector(["b"]))
        assert PRIMITIVES["select"](ctx, ["a", "b"], "Pick") == "b"

    def test_passes_prompt_and_flags(self):
        selector = FakeSelector(["a"])
        PRIMITIVES["select"](make_context(selector), ["a"], "Pick", multi=True)
        assert selector.calls == [{"candidates": ["a"], "prompt": "Pick", "edit": False, "multi": True}]

    def test_multi_joins(self):
        ctx = make_context(FakeSelector(["a", "c"]))
        assert PRIMITIVES["select"](ctx, ["a", "b", "c"], multi=True, sep=", ") == "a, c"

    def test_single_mode_keeps_first(self):
        ctx = make_context(FakeSelector(["a", "c"]))
        assert PRIMITIVES["select"](ctx, ["a", "b", "c"]) == "a"

    def test_cancel_aborts(self):
        with pytest.raises(SelectionAborted):
            PRIMITIVES["select"](make_context(FakeSelector([])), ["a"])

    def test_no_choices_aborts_without_prompting(self):
        selector = FakeSelector()
        with pytest.raises(SelectionAborted):
            PRIMITIVES["select"](make_context(selector), [])
        assert selector.calls == []

    def test_edit_prefers_picked_item(self):
        ctx = make_context(FakeSelector(["1h", "1"]))
        assert PRIMITIVES["select"](ctx, ["1h", "1d"], edit=True) == "1h"

    def test_edit_uses_typed_text_when_nothing_picked(self):
        ctx = make_context(FakeSelector(["90m"]))
        assert PRIMITIVES["select"](ctx, ["1h", "1d"], edit=True) == "90m"

    def test_edit_with_nothing_typed_aborts(self):
        with pytest.raises(SelectionAborted):
            PRIMITIVES["select"](make_context(FakeSelector([""])), ["1h"], edit=True)

    def test_save_records_last_selection(self):
        ctx = make_context(FakeSelector(["cpu"]))
        PRIMITIVES["select"](ctx, ["cpu"], save="measurement")
        assert ctx.last == {"measurement": "cpu"}

    def test_string_choices_split_on_lines(self):
        selector = FakeSelector(["b"])
        PRIMITIVES["select"](make_context(selector), "a\nb")
        assert selector.calls[0]["candidates"] == ["a", "b"]


class TestInput:
    def test_returns_text(self):
        ctx = make_context(prompt=lambda p: "mydb")
        assert PRIMITIVES["input"](ctx, "Name") == "mydb"

    def test_empty_aborts(self):
        with pytest.raises(SelectionAborted):
            PRIMITIVES["input"](make_context(prompt=lambda p: ""), "Name")

    def test_empty_uses_default(self):
        ctx = make_context(prompt=lambda p: "")
        assert PRIMITIVES["input"](ctx, "Duration", default="30d") == "30d"

    def test_no_prompt_configured(self):
        with pytest.raises(TemplateError, match="No input prompt"):
            PRIMITIVES["input"](make_context(), "Name")


class TestQuery:
    def test_first_column_distinct_across_series(self):
        client = SpyClient({"show tag keys": [
            Series(name="cpu", columns=["tagKey"], values=[["host"], ["region"]]),
            Series(name="mem", columns=["tagKey"], values=[["host"]]),
        ]})
        ctx = make_context(client=client)
        assert PRIMITIVES["query"](ctx, "show tag keys") == ["host", "region"]
        assert client.calls == [("show tag keys", "telegraf")]

    def test_named_column(self):
        client = SpyClient({"q": [Series(columns=["key", "value"], values=[["host", "a"], ["host", "b"]])]})
        assert PRIMITIVES["query"](make_context(client=client), "q", column="value") == ["a", "b"]

    def test_unknown_column(self):
        client = SpyClient({"q": [Series(columns=["key"], values=[["host"]])]})
        with pytest.raises(TemplateError, match="Column 'value'"):
            PRIMITIVES["query"](make_context(client=client), "q", column="value")

    def test_explicit_empty_db(self):
        client = SpyClient({"show users": []})
        PRIMITIVES["query"](make_context(client=client), "show users", db="")
        assert client.calls == [("show users", None)]

    def test_no_executor(self):
        with pytest.raises(TemplateError, match="No query executor"):
            PRIMITIVES["query"](make_context(), "show users")


class TestLastAndEnv:
    def test_last(self):
        ctx = make_context()
        ctx.last["tag"] = "host"
        assert PRIMITIVES["last"](ctx, "tag") == "host"

    def test_last_default(self):
        assert PRIMITIVES["last"](make_context(), "tag", "none-yet") == "none-yet"

    def test_last_missing(self):
        with pytest.raises(TemplateError, match="Nothing selected"):
            PRIMITIVES["last"](make_context(), "tag")

    def test_env(self, monkeypatch):
        monkeypatch.setenv("INFLUXKIT_TEST_VALUE", "42")
        assert PRIMITIVES["env"](make_context(), "INFLUXKIT_TEST_VALUE") == "42"
        assert PRIMITIVES["env"](make_context(), "INFLUXKIT_TEST_UNSET", "x") == "x"


class TestSchemaSelections:
    def test_select_database_records_choice(self):
        client = SpyClient({"show databases": single_column("databases", "name", "_internal", "telegraf")})
        ctx = make_context(FakeSelector(["telegraf"]), client)
        assert PRIMITIVES["select_database"](ctx) == "telegraf"
        assert ctx.last["database"] == "telegraf"
        assert client.calls == [("show databases", None)]

    def test_selected_database_used_for_later_queries(self):
        client = SpyClient({
            "show databases": single_column("databases", "name", "other"),
            "show measurements": single_column("measurements", "name", "disk"),
        })
        ctx = make_context(FakeSelector(["other"], ["disk"]), client)
        PRIMITIVES["select_database"](ctx)
        PRIMITIVES["select_measurement"](ctx)
        assert client.calls[1] == ("show measurements", "other")

    def test_tag_key_selects_measurement_first(self):
        client = SpyClient({
            "show measurements": single_column("measurements", "name", "cpu"),
            'show tag keys from "cpu"': single_column("cpu", "tagKey", "host"),
        })
        selector = FakeSelector(["cpu"], ["host"])
        ctx = make_context(selector, client)
        assert PRIMITIVES["select_tag_key"](ctx) == "host"
        assert ctx.last == {"measurement": "cpu", "tag": "host"}
        assert [c["prompt"] for c in selector.calls] == ["Measurement", "Tag"]

    def test_tag_key_reuses_last_measurement(self):
        client = SpyClient({'show tag keys from "mem"': single_column("mem", "tagKey", "host")})
        ctx = make_context(FakeSelector(["host"]), client)
        ctx.last["measurement"] = "mem"
        PRIMITIVES["select_tag_key"](ctx)
        assert client.calls == [('show tag keys from "mem"', "telegraf")]

    def test_tag_value(self):
        q = 'show tag values from "cpu" with key = "host"'
        client = SpyClient({q: [Series(name="cpu", columns=["key", "value"], values=[["host", "a"], ["host", "b"]])]})
        selector = FakeSelector(["b"])
        ctx = make_context(selector, client)
        ctx.last.update(measurement="cpu", tag="host")
        assert PRIMITIVES["select_tag_value"](ctx) == "b"
        assert selector.calls[0]["candidates"] == ["a", "b"]
        assert ctx.last["tag_value"] == "b"

    def test_field_key(self):
        client = SpyClient({'show field keys from "cpu"': [
            Series(name="cpu", columns=["fieldKey", "fieldType"], values=[["usage", "float"]]),
        ]})
        ctx = make_context(FakeSelector(["usage"]), client)
        ctx.last["measurement"] = "cpu"
        assert PRIMITIVES["select_field_key"](ctx) == "usage"
        assert ctx.last["field"] == "usage"

    def test_retention_policy(self):
        q = 'show retention policies on "telegraf"'
        client = SpyClient({q: [Series(columns=["name", "duration"], values=[["autogen", "0s"]])]})
        ctx = make_context(FakeSelector(["autogen"]), client)
        assert PRIMITIVES["select_retention_policy"](ctx) == "autogen"
        assert client.calls == [(q, None)]

    def test_retention_policy_selects_database_first(self):
        q = 'show retention policies on "prod"'
        client = SpyClient({
            "show databases": single_column("databases", "name", "prod"),
            q: [Series(columns=["name", "duration"], values=[["autogen", "0s"]])],
        })
        selector = FakeSelector(["prod"], ["autogen"])
        ctx = make_context(selector, client, database="")
        assert PRIMITIVES["select_retention_policy"](ctx) == "autogen"
        assert [c["prompt"] for c in selector.calls] == ["Database", "Retention policy"]
        assert client.calls == [("show databases", None), (q, None)]

    def test_repeated_selection_reuses_choice(self):
        client = SpyClient({"show measurements": single_column("measurements", "name", "cpu", "mem")})
        selector = FakeSelector(["cpu"])
        ctx = make_context(selector, client)
        assert PRIMITIVES["select_measurement"](ctx) == "cpu"
        assert PRIMITIVES["select_measurement"](ctx) == "cpu"
        assert len(selector.calls) == 1
        assert client.calls == [("show measurements", "telegraf")]

    def test_tag_key_after_tag_value_reuses_tag(self):
        q = 'show tag values from "cpu" with key = "host"'
        client = SpyClient({
            "show measurements": single_column("measurements", "name", "cpu"),
            'show tag keys from "cpu"': single_column("cpu", "tagKey", "host", "region"),
            q: [Series(name="cpu", columns=["key", "value"], values=[["host", "web1"]])],
        })
        selector = FakeSelector(["cpu"], ["host"], ["web1"])
        ctx = make_context(selector, client)
        assert PRIMITIVES["select_tag_value"](ctx) == "web1"
        assert PRIMITIVES["select_tag_key"](ctx) == "host"
        assert [c["prompt"] for c in selector.calls] == ["Measurement", "Tag", "host"]

    def test_user(self):
        client = SpyClient({"show users": [Series(columns=["user", "admin"], values=[["root", True]])]})
        ctx = make_context(FakeSelector(["root"]), client)
        assert PRIMITIVES["select_user"](ctx) == "root"
        assert ctx.last["user"] == "root"

    def test_empty_result_aborts(self):
        client = SpyClient({"show users": []})
        with pytest.raises(SelectionAborted):
            PRIMITIVES["select_user"](make_context(FakeSelector(), client))
