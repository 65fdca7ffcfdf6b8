"""
Shared pytest fixtures for the scpferry test suite.
"""

import pytest

from tests.fakes import FakeSession


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def local_file(tmp_path):
    """Factory writing bytes to a file under tmp_path and returning its path."""
    def _factory(name, content):
        path = tmp_path / name
        path.write_bytes(content)
        return path
    return _factory


@pytest.fixture
def session_factory():
    """Factory returning (factory callable, list of sessions it created)."""
    def _build(**kwargs):
        created = []

        def factory(hostname, port, username):
            s = FakeSession(**kwargs)
            s.address = (hostname, port, username)
            created.append(s)
            return s

        return factory, created
    return _build
