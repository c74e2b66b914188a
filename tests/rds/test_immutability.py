"""Tests for in-place change rules."""

from resource_spine.rds.immutability import is_change_mutable, is_engine_mutable
from resource_spine.rds.models import DBInstance


class TestEngineChanges:
    def test_create_is_always_mutable(self):
        assert is_change_mutable(None, DBInstance(engine="mysql"))

    def test_same_engine_case_insensitive(self):
        assert is_engine_mutable(DBInstance(engine="MySQL"), DBInstance(engine="mysql"))

    def test_unset_engine_keeps_live_one(self):
        assert is_engine_mutable(DBInstance(engine="mysql"), DBInstance())

    def test_engine_switch_is_immutable(self):
        assert not is_change_mutable(DBInstance(engine="mysql"), DBInstance(engine="postgres"))

    def test_aurora_to_aurora_mysql(self):
        assert is_engine_mutable(DBInstance(engine="aurora"), DBInstance(engine="aurora-mysql"))
        assert not is_engine_mutable(DBInstance(engine="aurora-mysql"), DBInstance(engine="aurora"))

    def test_oracle_se2_upgrade_needs_version(self):
        previous = DBInstance(engine="oracle-se1")
        assert is_engine_mutable(previous, DBInstance(engine="oracle-se2", engine_version="19"))
        assert not is_engine_mutable(previous, DBInstance(engine="oracle-se2"))
