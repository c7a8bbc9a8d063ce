import json
import logging
from dataclasses import replace
from unittest.mock import AsyncMock, patch

import pytest

from conftest import NAME_HISTORY, OTHER_UUID, PLAYER_UUID, write_json_file, write_player_dat
from playerdata import runner
from playerdata.cli import main
from playerdata.errors import NameLookupError
from playerdata.snapshot import PlayerSnapshot


@pytest.fixture
def offline():
    """Stub both web services so runs never touch the network."""
    with patch("mcapi.mojang.NameHistoryClient.fetch_name_history", new=AsyncMock(return_value=list(NAME_HISTORY))) as names, \
            patch("mcapi.crafatar.download_image", new=AsyncMock()) as download:
        yield names, download


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_select_players(world):
    assert runner.select_players(world, uuids=[OTHER_UUID, OTHER_UUID]) == [OTHER_UUID]
    assert runner.select_players(world, whitelist_only=True) == [PLAYER_UUID]
    assert runner.select_players(world) == [PLAYER_UUID]


@pytest.mark.asyncio
async def test_run_writes_index_and_applies_ban_list(world, offline):
    write_player_dat(world.playerdata / f"{OTHER_UUID}.dat", 1, 1700000000000)
    write_json_file(world.banned_players, [{"uuid": OTHER_UUID}])

    summary = await runner.run(world)

    assert summary.ok
    assert summary.world_time == 1200
    index = json.loads((world.output / "players.json").read_text(encoding="utf-8"))
    assert index["world_time"] == 1200
    assert [p["uuid"] for p in index["players"]] == [OTHER_UUID, PLAYER_UUID]
    assert [p["banned"] for p in index["players"]] == [True, False]
    assert (world.output / OTHER_UUID.replace("-", "") / "stats.json").exists()


@pytest.mark.asyncio
async def test_one_failing_player_does_not_stop_the_batch(world, offline):
    names, _ = offline
    write_player_dat(world.playerdata / f"{OTHER_UUID}.dat", 1, 2)

    async def lookup(uuid):
        if uuid == OTHER_UUID:
            raise NameLookupError(uuid, "HTTP 429")
        return list(NAME_HISTORY)

    names.side_effect = lookup
    summary = await runner.run(world)

    assert not summary.ok
    assert summary.failures == {OTHER_UUID: "identity"}
    assert [snapshot.uuid for snapshot in summary.snapshots] == [PLAYER_UUID]


@pytest.mark.asyncio
async def test_missing_level_dat_is_not_fatal(world, offline):
    summary = await runner.run(replace(world, level=world.level.with_name("missing.dat")))
    assert summary.world_time is None
    assert summary.ok


def test_cli_bad_config_exits_2(tmp_path, monkeypatch, restore_root_logger):
    monkeypatch.setenv("PLAYERDATA_LOG_DIR", str(tmp_path / "logs"))
    assert main(["--config", str(tmp_path / "missing.yml")]) == 2



@pytest.mark.asyncio
async def test_cache_write_failure_is_isolated_to_its_player(world, offline):
    write_player_dat(world.playerdata / f"{OTHER_UUID}.dat", 1, 2)
    # A directory where the cache file should go makes the write fail.
    (world.output / OTHER_UUID.replace("-", "") / "stats.json").mkdir(parents=True)

    summary = await runner.run(world)

    assert summary.failures == {OTHER_UUID: "cache"}
    assert [snapshot.uuid for snapshot in summary.snapshots] == [PLAYER_UUID]
    index = json.loads((world.output / "players.json").read_text(encoding="utf-8"))
    assert [p["uuid"] for p in index["players"]] == [PLAYER_UUID]


@pytest.mark.asyncio
async def test_unexpected_error_is_recorded_per_player(world, offline):
    write_player_dat(world.playerdata / f"{OTHER_UUID}.dat", 1, 2)
    real_build = runner.PlayerAggregator.build_snapshot

    async def build(self, uuid, banned):
        if uuid == OTHER_UUID:
            raise RuntimeError("boom")
        return await real_build(self, uuid, banned)

    with patch.object(runner.PlayerAggregator, "build_snapshot", new=build):
        summary = await runner.run(world)

    assert summary.failures == {OTHER_UUID: "unexpected"}
    assert [snapshot.uuid for snapshot in summary.snapshots] == [PLAYER_UUID]
    assert (world.output / "players.json").exists()


@pytest.mark.asyncio
async def test_damaged_save_file_does_not_stop_the_batch(world, offline):
    path = write_player_dat(world.playerdata / f"{OTHER_UUID}.dat", 1, 2)
    good = path.read_bytes()
    path.write_bytes(good[:10] + b"\xff" * 30 + good[40:])

    summary = await runner.run(world)

    assert summary.failures == {OTHER_UUID: "state"}
    assert [snapshot.uuid for snapshot in summary.snapshots] == [PLAYER_UUID]
    assert (world.output / "players.json").exists()


@pytest.mark.asyncio
async def test_ban_list_matches_regardless_of_case(world, offline):
    write_json_file(world.banned_players, [{"uuid": PLAYER_UUID.upper()}])

    summary = await runner.run(world, uuids=[PLAYER_UUID.upper()])

    assert summary.ok
    snapshot = summary.snapshots[0]
    assert isinstance(snapshot, PlayerSnapshot)
    assert snapshot.uuid == PLAYER_UUID
    assert snapshot.banned is True
