"""Client configuration for remongo."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class RemongoConfig:
    """Client configuration.

    Parameters
    ----------
    db : str or None
        Store (database) name used when neither the sync spec nor the
        layer names one.
    db_save : str or None
        Store name used for saving when no layer or spec save override
        is given. Takes precedence over ``db`` on the save side only.
    dry_run : bool
        Default for :meth:`remongo.client.RemongoClient.save`. A dry run
        computes diffs but never mutates the store, the cache or the tree.
    serialize_per_spec : bool
        Serialize concurrent save/load calls that share a sync spec
        identity behind one lock per identity.
    """

    db: str | None = None
    db_save: str | None = None
    dry_run: bool = False
    serialize_per_spec: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> RemongoConfig:
        """Create configuration from environment variables.

        Reads ``REMONGO_DB``, ``REMONGO_DB_SAVE``, ``REMONGO_DRY_RUN`` and
        ``REMONGO_SERIALIZE_PER_SPEC``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RemongoConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "REMONGO_DB": "db",
            "REMONGO_DB_SAVE": "db_save",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        if "dry_run" not in overrides:
            config_kwargs["dry_run"] = _env_bool(env.get("REMONGO_DRY_RUN"), False)

        if "serialize_per_spec" not in overrides:
            config_kwargs["serialize_per_spec"] = _env_bool(
                env.get("REMONGO_SERIALIZE_PER_SPEC"),
                True,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
