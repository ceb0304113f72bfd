"""
petsconnect.config — YAML Configuration Loader
===============================================

Reads ``config.yaml`` for community identity and feed tuning.  Secrets
(``DATABASE_URL``, ``JWT_SECRET``) stay in the environment and are never
read from this file.

Usage::

    from petsconnect.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.community_name)        # "PetsConnect"
    print(cfg.feed_default_limit)    # 50
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PetsConnectConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Feed sizing
    feed_default_limit: int = 50   # global + group feeds
    feed_helpful_limit: int = 5    # "most helpful" sidebar
    feed_search_limit: int = 20
    feed_max_limit: int = 200      # hard ceiling for the ``limit`` query param

    # When True the composer fetches every candidate in scope, orders it,
    # then truncates.  When False, truncation happens at fetch time.
    feed_order_before_limit: bool = False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> PetsConnectConfig:
    """Read *path* and return a :class:`PetsConnectConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    feed: dict = raw.get("feed") or {}
    defaults = PetsConnectConfig(community_name="")

    return PetsConnectConfig(
        community_name=raw["community_name"],
        feed_default_limit=int(feed.get("default_limit", defaults.feed_default_limit)),
        feed_helpful_limit=int(feed.get("helpful_limit", defaults.feed_helpful_limit)),
        feed_search_limit=int(feed.get("search_limit", defaults.feed_search_limit)),
        feed_max_limit=int(feed.get("max_limit", defaults.feed_max_limit)),
        feed_order_before_limit=bool(
            feed.get("order_before_limit", defaults.feed_order_before_limit)
        ),
    )
