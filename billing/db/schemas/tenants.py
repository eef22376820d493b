from typing import Optional

from .common import Payload, Record


class TenantBase(Payload):
    name: Optional[str] = None
    key: Optional[str] = None
    country_code: Optional[str] = None
    primary_currency_code: Optional[str] = None
    preferred_language_code: Optional[str] = None
    timezone: Optional[str] = None
    tax_number: Optional[str] = None
    tax_exempt: Optional[bool] = None
    billing_email: Optional[str] = None
    billing_address: Optional[str] = None
    billing_phone: Optional[str] = None
    status: Optional[str] = None
    subdomain: Optional[str] = None
    database_name: Optional[str] = None
    database_username: Optional[str] = None
    database_password: Optional[str] = None


class TenantCreate(TenantBase):
    pass


class TenantUpdate(TenantBase):
    pass


class Tenant(Record):
    # database_password is never serialized
    name: str
    key: str
    country_code: str
    primary_currency_code: str
    preferred_language_code: str
    timezone: str
    tax_number: Optional[str] = None
    tax_exempt: bool
    billing_email: str
    billing_address: Optional[str] = None
    billing_phone: Optional[str] = None
    status: str
    subdomain: Optional[str] = None
    database_name: Optional[str] = None
    database_username: Optional[str] = None
