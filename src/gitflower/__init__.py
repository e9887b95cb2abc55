"""GitFlower: a tree of bare git repositories, listed and created on disk."""

__version__ = "0.1.0"
