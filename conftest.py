import pytest


@pytest.fixture(autouse=True)
def mock_cloud_env(monkeypatch):
    """Automatically mock cloud environment variables for all tests"""
    monkeypatch.setenv("GEMINI_API_KEY", "mock-key")
