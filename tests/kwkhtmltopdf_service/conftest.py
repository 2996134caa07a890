"""
Pytest fixtures for kwkhtmltopdf service tests.
"""

import os

# Set environment variables BEFORE any imports from kwkhtmltopdf_service
# so the cached settings used by the module-level app are predictable.
os.environ["KWKHTMLTOPDF_BIN"] = "wkhtmltopdf"
os.environ.pop("KWKHTMLTOPDF_TIMEOUT", None)

import pytest
from fastapi.testclient import TestClient

from fakes import FakeRenderer, multipart_body
from kwkhtmltopdf_service.app import create_app
from kwkhtmltopdf_service.config import ServiceSettings


@pytest.fixture
def settings():
    """Settings with defaults, independent of the environment."""
    return ServiceSettings(kwkhtmltopdf_bin="wkhtmltopdf")


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def client(settings, fake_renderer):
    """Test client for an app wired to the fake renderer."""
    return TestClient(create_app(settings=settings, renderer=fake_renderer))


@pytest.fixture
def post_parts(client):
    """POST the given parts as multipart/form-data to a path."""
    def _post(parts, path="/pdf", test_client=None):
        body, content_type = multipart_body(parts)
        return (test_client or client).post(
            path, content=body, headers={"Content-Type": content_type}
        )
    return _post
