"""Clients for the web services player snapshots depend on.

`mcapi.mojang` resolves a player's name history through a shared
rate limiter, and `mcapi.crafatar` downloads avatar, body and skin
images for the presentation layer.
"""
