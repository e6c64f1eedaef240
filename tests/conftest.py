"""Shared fixtures for the crawler tests."""

import pytest

from wall_spider.config import Config


@pytest.fixture
def config() -> Config:
    return Config(api_token="test-token")
