import pytest

from site_controller.iis import (
    AppcmdInventory,
    parse_appcmd_list,
    parse_state,
    pool_inventory,
    site_inventory,
)
from site_controller.inventory import InventoryError, TransitionRejected
from site_controller.models import ObjectState
from site_controller.runner import CommandResult

from fakes import FakeRunner

POOLS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<appcmd>
    <APPPOOL APPPOOL.NAME="DefaultAppPool" PipelineMode="Integrated" RuntimeVersion="v4.0" state="Started" />
    <APPPOOL APPPOOL.NAME="mysite1" PipelineMode="Integrated" RuntimeVersion="v4.0" state="Stopped" />
</appcmd>
"""

SITES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<appcmd>
    <SITE SITE.NAME="Default Web Site" SITE.ID="1" bindings="http/*:80:" state="Started" />
    <SITE SITE.NAME="mysite1" SITE.ID="2" bindings="http/*:8080:" state="Stopping" />
</appcmd>
"""

LIST_POOLS = ("appcmd", "list", "apppool", "/xml")
LIST_SITES = ("appcmd", "list", "site", "/xml")


class TestParse:

    def test_pools(self):
        assert parse_appcmd_list(POOLS_XML, "apppool") == {
            "DefaultAppPool": ObjectState.STARTED,
            "mysite1": ObjectState.STOPPED,
        }

    def test_sites(self):
        assert parse_appcmd_list(SITES_XML, "site") == {
            "Default Web Site": ObjectState.STARTED,
            "mysite1": ObjectState.STOPPING,
        }

    def test_empty_listing(self):
        assert parse_appcmd_list("<appcmd />", "site") == {}

    def test_garbage(self):
        with pytest.raises(InventoryError):
            parse_appcmd_list("ERROR ( message:Unknown attribute )", "apppool")

    @pytest.mark.parametrize("value, state", [
        ("Started", ObjectState.STARTED),
        ("stopped", ObjectState.STOPPED),
        ("Unknown", ObjectState.UNKNOWN),
        ("weird", ObjectState.UNKNOWN),
        (None, ObjectState.UNKNOWN),
    ])
    def test_parse_state(self, value, state):
        assert parse_state(value) is state


class TestAppcmdInventory:

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            AppcmdInventory(FakeRunner(), "vdir")

    def test_default_appcmd_from_env(self, monkeypatch):
        monkeypatch.setenv("SITE_CONTROLLER_APPCMD", r"C:\tools\appcmd.exe")
        assert pool_inventory(FakeRunner()).appcmd == r"C:\tools\appcmd.exe"

    @pytest.mark.asyncio
    async def test_lookup_pool(self):
        runner = FakeRunner({LIST_POOLS: CommandResult(0, POOLS_XML)})
        inventory = pool_inventory(runner, "appcmd")

        pool = await inventory.lookup("mysite1")

        assert pool.name == "mysite1"
        assert pool.state is ObjectState.STOPPED
        assert runner.calls == [list(LIST_POOLS)]

    @pytest.mark.asyncio
    async def test_lookup_is_exact(self):
        runner = FakeRunner({LIST_SITES: CommandResult(0, SITES_XML)})
        inventory = site_inventory(runner, "appcmd")

        assert await inventory.lookup("MYSITE1") is None
        assert await inventory.lookup("nope") is None

    @pytest.mark.asyncio
    async def test_listing_failure(self):
        runner = FakeRunner({LIST_POOLS: CommandResult(1, "", "Access is denied.")})

        with pytest.raises(InventoryError, match="Access is denied"):
            await pool_inventory(runner, "appcmd").lookup("mysite1")

    @pytest.mark.asyncio
    async def test_stop_site(self):
        runner = FakeRunner({LIST_SITES: CommandResult(0, SITES_XML)})
        site = await site_inventory(runner, "appcmd").lookup("Default Web Site")

        await site.stop()

        assert runner.calls[-1] == ["appcmd", "stop", "site", "/site.name:Default Web Site"]

    @pytest.mark.asyncio
    async def test_start_rejected(self):
        start = ("appcmd", "start", "apppool", "/apppool.name:mysite1")
        message = 'ERROR ( hresult:800710d8, message:Command execution failed. )'
        runner = FakeRunner({
            LIST_POOLS: CommandResult(0, POOLS_XML),
            start: CommandResult(1, message),
        })
        pool = await pool_inventory(runner, "appcmd").lookup("mysite1")

        with pytest.raises(TransitionRejected, match="800710d8"):
            await pool.start()
