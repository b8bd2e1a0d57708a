"""Shared fixtures: bundled dictionaries and a fake RADIUS engine."""

from pathlib import Path

import pytest

from radius_engine import OK_RC
from radius_errors import AttributeRejectedError, SetupError

ROOT = Path(__file__).resolve().parent.parent


class FakeEngine:
    """Engine stand-in recording every call made by the transaction."""

    def __init__(self, result=OK_RC, reply=(), fail_validate=False,
                 fail_dictionary=None, fail_attribute=None):
        self.result = result
        self.reply = list(reply)
        self.fail_validate = fail_validate
        self.fail_dictionary = fail_dictionary
        self.fail_attribute = fail_attribute
        self.dictionaries = []
        self.options = {}
        self.added = []
        self.submitted = None
        self.closed = False

    def load_dictionary(self, path):
        if path == self.fail_dictionary:
            raise SetupError(f"unable to read dictionary '{path}'")
        self.dictionaries.append(path)

    def set_option(self, key, value):
        self.options[key] = value

    def validate(self):
        if self.fail_validate:
            raise SetupError("config incomplete")

    def new_request(self):
        return []

    def add_attribute(self, request, attribute):
        if len(self.added) == self.fail_attribute:
            raise AttributeRejectedError(f"{attribute.name}: rejected")
        self.added.append(attribute)
        request.append(attribute)

    def submit(self, request):
        self.submitted = list(request)
        return self.result, list(self.reply)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_engine():
    """Build engine factories; engines they create are kept in ``factory.engines``."""

    def make(**kwargs):
        def factory():
            engine = FakeEngine(**kwargs)
            factory.engines.append(engine)
            return engine

        factory.engines = []
        return factory

    return make


@pytest.fixture
def dictionary_paths():
    return (str(ROOT / "dictionary"), str(ROOT / "dictionary.softbank"))
