"""Halo-finding building blocks: a spatial tree, friends-of-friends grouping, cosmological distances, bounds, configuration and checked I/O."""

__version__ = "0.1.0"