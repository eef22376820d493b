"""Tenant domain object."""
from __future__ import annotations

import logging

from billing.db import schemas
from billing.db.models import TABLE_AP
from billing.db.repositories import base as repo
from billing.db.validators import tenants as rules
from billing.errors import ValidationError
from billing.utils.feature_flags import tenant_provisioning_enabled
from billing.utils.passwords import hash_secret, is_hashed, verify_secret
from .base import DomainObject
from .reference import COUNTRY_TABLE, CURRENCY_TABLE, LANGUAGE_TABLE

logger = logging.getLogger(__name__)

TENANT_TABLE = f"{TABLE_AP}_tenant"

PROVISIONED_COLUMNS = ("subdomain", "database_name", "database_username", "database_password")


class Tenant(DomainObject):
    table = TENANT_TABLE
    label = "Tenant"
    schema = schemas.Tenant
    key_field = "key"
    name_field = "name"
    lookup_fields = ("key", "subdomain")
    unique_fields = ("key", "subdomain")
    active_field = None
    references = (
        ("country_code", COUNTRY_TABLE, "code"),
        ("primary_currency_code", CURRENCY_TABLE, "code"),
        ("preferred_language_code", LANGUAGE_TABLE, "code"),
    )
    clean = staticmethod(rules.clean_tenant)
    validate = staticmethod(rules.validate_tenant)

    @classmethod
    def export_conditions(cls):
        return {"status": "ACTIVE"}

    def validation_options(self, creating: bool) -> dict:
        return {"provisioning": creating and tenant_provisioning_enabled()}

    def prepare(self, data: dict, creating: bool) -> dict:
        if not tenant_provisioning_enabled():
            # Provisioning fields are ignored unless the feature is on
            for field in PROVISIONED_COLUMNS:
                if field in self._values:
                    logger.debug("tenant_provisioning_disabled: ignoring %s", field)
                if self._row is not None:
                    data[field] = getattr(self._row, field)
                else:
                    data.pop(field, None)
        elif "database_password" in self._values and self._values["database_password"] is not None:
            password = self._values["database_password"]
            if not is_hashed(password):
                rules.check_password_strength(password)
                if self._row is not None and self.verify_database_password(password):
                    # Same secret: keep the stored hash
                    data["database_password"] = self._row.database_password
                else:
                    data["database_password"] = hash_secret(password)

        if creating and not data.get("key") and data.get("name"):
            data["key"] = self._available_key(rules.slugify_key(data["name"]))
        return data

    def _available_key(self, base: str) -> str:
        if len(base) < 2:
            raise ValidationError("Tenant key cannot be derived from the name; provide a key")
        model = self.model()
        candidate, suffix = base, 2
        while repo.exists(self.db, model, key=candidate):
            tail = f"-{suffix}"
            candidate = f"{base[:100 - len(tail)]}{tail}"
            suffix += 1
        return candidate

    def verify_database_password(self, password: str) -> bool:
        stored = self._row.database_password if self._row is not None else None
        return verify_secret(password, stored)

    def summary(self) -> dict:
        return {"guid": self.guid, "key": self.get("key"), "name": self.get("name")}

    @classmethod
    def find_by_subdomain(cls, db, subdomain: str):
        return cls._wrap(db, repo.find_one(db, cls.model(), subdomain=subdomain))
