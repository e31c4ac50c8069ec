"""Shared fixtures for the marketplace test suite."""

import pytest

from marketplace.config import Settings
from marketplace.models.user import Identity
from tests.fakes import FakeMongoDB


@pytest.fixture()
def db() -> FakeMongoDB:
    return FakeMongoDB()


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def buyer() -> Identity:
    return Identity(id="buyer_001", companyType="distributor", role="buyer")


@pytest.fixture()
def seller() -> Identity:
    return Identity(id="mfr_A", companyType="manufacturer", role="manufacturer")
