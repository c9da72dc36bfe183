import json

import pytest

from vg_backend import deps as deps_mod
from vg_backend.features.catalog import Catalog


@pytest.mark.asyncio
async def test_build_services_with_fresh_data_dir(tmp_path):
    out = await deps_mod.build_services(tmp_path / "app", watch_config=False)
    assert out.ok, out.error
    services = out.data
    try:
        assert isinstance(services["catalog"], Catalog)
        assert (tmp_path / "app" / "config.json").is_file()
        assert (tmp_path / "app" / "data" / "thumbnails").is_dir()
        assert (tmp_path / "app" / "data" / "placeholder.png").is_file()
        assert services["config"].current().folders == ()
        assert services["catalog"].home() == []
    finally:
        await deps_mod.dispose_services(services)
    assert services["kv"].is_open is False


@pytest.mark.asyncio
async def test_build_services_rejects_invalid_config(tmp_path):
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    (app_dir / "config.json").write_text(json.dumps({"folders": ["relative"]}), encoding="utf-8")

    out = await deps_mod.build_services(app_dir, watch_config=False)
    assert out.ok is False
    assert out.code == "CONFIG_INVALID"


@pytest.mark.asyncio
async def test_build_services_reports_unusable_data_dir(tmp_path):
    blocker = tmp_path / "app"
    blocker.write_text("not a directory")
    out = await deps_mod.build_services(blocker, watch_config=False)
    assert out.ok is False
    assert out.code == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_dispose_tolerates_partial_containers():
    await deps_mod.dispose_services({})
