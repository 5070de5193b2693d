import pytest

from site_controller.models import SiteGroup
from site_controller.orchestrator import SiteOrchestrator

from fakes import FakeInventory, FakeWarmer


@pytest.fixture
def pools():
    return FakeInventory()


@pytest.fixture
def sites():
    return FakeInventory()


@pytest.fixture
def services():
    return FakeInventory(ignore_case=True, service=True)


@pytest.fixture
def warmer():
    return FakeWarmer()


@pytest.fixture
def orchestrator(pools, sites, services, warmer):
    return SiteOrchestrator(pools=pools, sites=sites, services=services, warmer=warmer)


@pytest.fixture
def mysite1():
    return SiteGroup(
        name="mysite1",
        app_pools=["mysite1"],
        websites=["mysite1"],
        services=["solr-mysite1"],
        warm=["http://localhost"],
    )
