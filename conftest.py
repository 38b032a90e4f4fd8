import pytest
import requests


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    def _blocked(*args, **kwargs):
        raise requests.ConnectionError("network access is disabled in tests")

    monkeypatch.setattr(requests, "get", _blocked)
