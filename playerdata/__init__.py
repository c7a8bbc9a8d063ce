"""Player data aggregation for a Minecraft server.

This package reads a world's save files (NBT player state, statistics and
advancements), merges them with name history from Mojang and images from
Crafatar, and caches one snapshot per player under the output folder. The
batch runtime lives in `playerdata.runner` and the CLI in `playerdata.cli`.
"""
