"""The per-player snapshot and its cache file layout."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class PlayerSnapshot:
    uuid: str
    uuid_short: str
    playername: str
    names: tuple
    time_start: int
    time_last: int
    last_update: int
    banned: bool = False
    time_lived: Optional[int] = None
    stats: Optional[dict] = None
    stats_source: Optional[dict] = None
    advancements: Optional[dict] = None

    @property
    def seen(self) -> int:
        return self.time_last

    def with_banned(self, banned: bool) -> "PlayerSnapshot":
        return replace(self, banned=bool(banned))

    def to_dict(self) -> dict:
        """Serialize to the layout written to ``<output>/<uuid_short>/stats.json``."""
        data = {
            "seen": self.seen,
            "time_start": self.time_start,
            "time_last": self.time_last,
        }
        if self.time_lived is not None:
            data["time_lived"] = self.time_lived
        data.update(
            {
                "playername": self.playername,
                "names": [dict(entry) for entry in self.names],
                "uuid_short": self.uuid_short,
                "lastUpdate": self.last_update,
                "uuid": self.uuid,
                "banned": self.banned,
            }
        )
        return {
            "stats": self.stats,
            "stats_source": self.stats_source,
            "advancements": self.advancements,
            "data": data,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "PlayerSnapshot":
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise ValueError("snapshot must be an object with a 'data' object")
        data = payload["data"]
        try:
            names = tuple(dict(entry) for entry in data.get("names") or ())
            return cls(
                uuid=data["uuid"],
                uuid_short=data.get("uuid_short") or data["uuid"].replace("-", ""),
                playername=data["playername"],
                names=names,
                time_start=int(data["time_start"]),
                time_last=int(data["time_last"]),
                last_update=int(data["lastUpdate"]),
                banned=bool(data.get("banned", False)),
                time_lived=data.get("time_lived"),
                stats=payload.get("stats"),
                stats_source=payload.get("stats_source"),
                advancements=payload.get("advancements"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid snapshot: {e!r}") from e
