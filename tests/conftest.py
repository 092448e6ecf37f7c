"""Shared fakes for the selector and the query executor."""

import pytest

from influxkit.client import Series


class FakeSelector:
    """Answers select() calls from a queue of canned responses.

    A response is a list of picked lines or a callable taking the candidates.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def select(self, candidates, prompt="", edit=False, multi=False):
        self.calls.append({"candidates": list(candidates), "prompt": prompt, "edit": edit, "multi": multi})
        response = self.responses.pop(0)
        if callable(response):
            return response(candidates)
        return list(response)


class SpyClient:
    """Records queries and answers them from a dict of query -> series list."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    def query_series(self, q, db=None, epoch=None):
        self.calls.append((q, db))
        return self.results.get(q, [Series(name="result", columns=["ok"], values=[[1]])])


def single_column(name, column, *values):
    return [Series(name=name, columns=[column], values=[[v] for v in values])]


@pytest.fixture
def spy_client():
    return SpyClient()


@pytest.fixture
def write_template(tmp_path):
    """Write template text to a file and return its path."""
    def write(text, name="user.influxq"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return write
