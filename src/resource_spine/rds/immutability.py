"""Which DB instance changes can be applied in place.

Changing the engine replaces the instance, except for the in-place upgrade
paths the service supports.
"""

from __future__ import annotations

from resource_spine.rds.models import DBInstance

AURORA = "aurora"
AURORA_MYSQL = "aurora-mysql"
ORACLE_SE = "oracle-se"
ORACLE_SE1 = "oracle-se1"
ORACLE_SE2 = "oracle-se2"


def _engine(model: DBInstance) -> str | None:
    return model.engine.lower() if model.engine else None


def is_upgrade_to_aurora_mysql(previous: DBInstance, desired: DBInstance) -> bool:
    return _engine(previous) == AURORA and _engine(desired) == AURORA_MYSQL


def is_upgrade_to_oracle_se2(previous: DBInstance, desired: DBInstance) -> bool:
    return (
        _engine(previous) in (ORACLE_SE, ORACLE_SE1)
        and _engine(desired) == ORACLE_SE2
        and desired.engine_version is not None
    )


def is_engine_mutable(previous: DBInstance, desired: DBInstance) -> bool:
    # An unset desired engine keeps the live one
    if desired.engine is None or _engine(previous) == _engine(desired):
        return True
    return is_upgrade_to_aurora_mysql(previous, desired) or is_upgrade_to_oracle_se2(previous, desired)


def is_change_mutable(previous: DBInstance | None, desired: DBInstance) -> bool:
    """True when ``desired`` can be reached from ``previous`` without replacement."""
    if previous is None:
        return True
    return is_engine_mutable(previous, desired)


__all__ = ["is_change_mutable", "is_engine_mutable"]
