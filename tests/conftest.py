import json
from pathlib import Path

import nbtlib
import pytest

from playerdata.config import AppConfig

PLAYER_UUID = "069a79f4-44e9-4726-a5be-fca90e38aaf5"
OTHER_UUID = "853c80ef-3c37-49fd-aa49-938b674adae6"

NAME_HISTORY = [
    {"name": "Notch"},
    {"name": "NotchTwo", "changedToAt": 1423059901000},
    {"name": "NotchThree", "changedToAt": 1500000000000},
]


def write_player_dat(path: Path, first_played: int, last_played: int, ticks_lived=None) -> Path:
    root = {
        "bukkit": nbtlib.Compound(
            {
                "firstPlayed": nbtlib.Long(first_played),
                "lastPlayed": nbtlib.Long(last_played),
            }
        ),
    }
    if ticks_lived is not None:
        root["Spigot.ticksLived"] = nbtlib.Int(ticks_lived)
    path.parent.mkdir(parents=True, exist_ok=True)
    nbtlib.File(root).save(path, gzipped=True)
    return path


def write_level_dat(path: Path, time_ticks: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    nbtlib.File({"Data": nbtlib.Compound({"Time": nbtlib.Long(time_ticks)})}).save(path, gzipped=True)
    return path


def write_json_file(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def world(tmp_path):
    """A minimal server folder with one player and a config pointing at it."""
    world_dir = tmp_path / "world"
    write_level_dat(world_dir / "level.dat", 24000)
    write_player_dat(
        world_dir / "playerdata" / f"{PLAYER_UUID}.dat",
        first_played=1500000000000,
        last_played=1600000000000,
        ticks_lived=72000,
    )
    write_json_file(
        world_dir / "stats" / f"{PLAYER_UUID}.json",
        {"stats": {"minecraft:custom": {"minecraft:jump": 5}}, "DataVersion": 1343},
    )
    write_json_file(
        world_dir / "advancements" / f"{PLAYER_UUID}.json",
        {"minecraft:story/root": {"done": True}},
    )
    write_json_file(tmp_path / "whitelist.json", [{"uuid": PLAYER_UUID, "name": "Notch"}])
    write_json_file(tmp_path / "banned-players.json", [])

    return AppConfig(
        level=world_dir / "level.dat",
        playerdata=world_dir / "playerdata",
        output=tmp_path / "output",
        stats=world_dir / "stats",
        advancements=world_dir / "advancements",
        whitelist=tmp_path / "whitelist.json",
        banned_players=tmp_path / "banned-players.json",
        ratelimit=0,
        basepath=tmp_path,
    )
