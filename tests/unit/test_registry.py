import pytest

from billing.db import models
from billing.db.registry import MODELS, TableInitializer


@pytest.fixture
def fresh_registry():
    """Run a test against an empty registry, then restore the shared one."""
    TableInitializer.cleanup()
    yield TableInitializer
    TableInitializer.cleanup()
    TableInitializer.initialize()


def test_registry_is_initialized_for_tests():
    stats = TableInitializer.get_stats()
    assert stats["initialized"] is True
    assert stats["table_count"] == 14
    assert "xf_country" in stats["table_names"]
    assert "xa_activity_monitoring" in stats["table_names"]


def test_get_model_by_table_name():
    assert TableInitializer.get_model("xa_tenant") is models.Tenant
    assert set(TableInitializer.get_all_models()) == {model.__tablename__ for model in MODELS}


def test_unknown_table_lists_available_names():
    with pytest.raises(KeyError, match="xf_currency"):
        TableInitializer.get_model("xa_nope")


def test_uninitialized_registry_refuses_lookups(fresh_registry):
    assert fresh_registry.is_initialized() is False
    with pytest.raises(RuntimeError, match="not initialized"):
        fresh_registry.get_model("xa_tenant")


def test_initialize_is_idempotent(fresh_registry):
    fresh_registry.initialize()
    fresh_registry.initialize()
    assert fresh_registry.get_stats()["table_count"] == len(MODELS)
