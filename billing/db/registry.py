"""
Process-wide registry mapping table names to ORM models.

Built once on application startup; domain objects resolve their model
through :meth:`TableInitializer.get_model`.
"""
import logging
from typing import Dict, Optional

from billing.db import models

logger = logging.getLogger(__name__)

MODELS = (
    models.Country,
    models.Currency,
    models.ExchangeRate,
    models.Language,
    models.TaxRule,
    models.Tenant,
    models.GlobalLicense,
    models.EmployeeLicense,
    models.BillingCycle,
    models.PaymentMethod,
    models.LicenseAdjustment,
    models.PaymentTransaction,
    models.FraudDetectionLog,
    models.ActivityMonitoring,
)


class TableInitializer:
    _models: Dict[str, type] = {}
    _initialized = False

    @classmethod
    def initialize(cls, engine=None, create: bool = False) -> None:
        """Register every model; ``create=True`` also runs ``create_all`` on ``engine``."""
        if cls._initialized:
            logger.debug("table_initializer: already initialized")
            return
        cls._models = {model.__tablename__: model for model in MODELS}
        if create and engine is not None:
            models.Base.metadata.create_all(bind=engine)
        cls._initialized = True
        logger.info("table_initializer: %d tables registered", len(cls._models))

    @classmethod
    def get_model(cls, table_name: str):
        if not cls._initialized:
            raise RuntimeError("TableInitializer is not initialized. Call initialize() first.")
        model: Optional[type] = cls._models.get(table_name)
        if model is None:
            raise KeyError(f"Model '{table_name}' not found. Available: {', '.join(sorted(cls._models))}")
        return model

    @classmethod
    def get_all_models(cls) -> Dict[str, type]:
        return dict(cls._models)

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def get_stats(cls) -> dict:
        return {
            "initialized": cls._initialized,
            "table_count": len(cls._models),
            "table_names": list(cls._models),
        }

    @classmethod
    def cleanup(cls) -> None:
        cls._models = {}
        cls._initialized = False
        logger.info("table_initializer: cleaned up")
