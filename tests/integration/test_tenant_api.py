import pytest

from billing.utils.feature_flags import refresh_feature_flag_cache

ACME = {
    "name": "Acme Corp",
    "country_code": "fr",
    "primary_currency_code": "eur",
    "preferred_language_code": "FR",
    "billing_email": "Billing@Acme.Example",
    "billing_phone": "+33 1 23 45 67 89",
    "timezone": "Europe/Paris",
}


def _data(response):
    return response.json()["data"]


def _error_code(response):
    return response.json()["error"]["code"]


def test_create_tenant_derives_key(client, reference_data):
    response = client.post("/tenant", json=ACME)
    assert response.status_code == 201
    tenant = _data(response)
    assert tenant["key"] == "acme-corp"
    assert tenant["country_code"] == "FR"
    assert tenant["preferred_language_code"] == "fr"
    assert tenant["billing_email"] == "billing@acme.example"
    assert tenant["status"] == "ACTIVE"
    assert tenant["tax_exempt"] is False
    assert "database_password" not in tenant

    second = _data(client.post("/tenant", json=ACME))
    assert second["key"] == "acme-corp-2"


def test_create_tenant_errors(client, reference_data):
    missing = client.post("/tenant", json={k: v for k, v in ACME.items() if k != "billing_email"})
    assert missing.status_code == 400
    assert _error_code(missing) == "billing_email_required"

    unknown_country = client.post("/tenant", json={**ACME, "country_code": "DE"})
    assert unknown_country.status_code == 400
    assert _error_code(unknown_country) == "validation_failed"

    bad_phone = client.post("/tenant", json={**ACME, "billing_phone": "0123456789"})
    assert bad_phone.status_code == 400

    client.post("/tenant", json={**ACME, "key": "acme"})
    duplicate = client.post("/tenant", json={**ACME, "key": "acme"})
    assert duplicate.status_code == 409
    assert _error_code(duplicate) == "tenant_already_exists"


def test_tenant_lookups(client, tenant_factory):
    tenant = tenant_factory("Acme Corp")
    for identifier in ("acme-corp", str(tenant.guid), str(tenant.id)):
        response = client.get(f"/tenant/{identifier}")
        assert response.status_code == 200
        assert _data(response)["guid"] == tenant.guid

    assert _data(client.get("/tenant/search/key/acme-corp"))["name"] == "Acme Corp"
    missing = client.get("/tenant/search/key/globex")
    assert missing.status_code == 404
    assert _error_code(missing) == "tenant_not_found"
    assert client.get("/tenant/search/subdomain/acme").status_code == 404


def test_tenant_filters(client, tenant_factory):
    tenant_factory("Acme Corp")
    tenant_factory("Globex", country_code="US", primary_currency_code="USD", preferred_language_code="en",
                   tax_exempt=True, timezone="America/New_York")
    tenant_factory("Initech", status="SUSPENDED")

    by_country = _data(client.get("/tenant/country/us"))["tenants"]
    assert by_country["country_code"] == "US"
    assert [item["name"] for item in by_country["items"]] == ["Globex"]

    by_currency = _data(client.get("/tenant/currency/eur"))["tenants"]
    assert by_currency["currency_code"] == "EUR"
    assert by_currency["pagination"]["count"] == 2

    by_language = _data(client.get("/tenant/language/EN"))["tenants"]
    assert by_language["language_code"] == "en"

    by_timezone = _data(client.get("/tenant/timezone/America/New_York"))["tenants"]
    assert [item["name"] for item in by_timezone["items"]] == ["Globex"]

    exempt = _data(client.get("/tenant/tax-exempt/true"))["tenants"]
    assert exempt["tax_exempt"] is True
    assert [item["name"] for item in exempt["items"]] == ["Globex"]

    suspended = _data(client.get("/tenant/status/suspended"))["tenants"]
    assert suspended["status"] == "SUSPENDED"
    assert [item["name"] for item in suspended["items"]] == ["Initech"]

    invalid = client.get("/tenant/status/deleted")
    assert invalid.status_code == 400
    assert _error_code(invalid) == "invalid_status"

    listed = _data(client.get("/tenant/list?status=active&country_code=fr"))["tenants"]
    assert [item["name"] for item in listed["items"]] == ["Acme Corp"]

    exported = _data(client.get("/tenant"))["tenants"]
    assert [item["name"] for item in exported["items"]] == ["Acme Corp", "Globex"]


def test_update_and_delete_tenant(client, tenant_factory):
    tenant = tenant_factory("Acme Corp")
    updated = client.put(f"/tenant/{tenant.guid}", json={"status": "suspended", "tax_number": "FR123456"})
    assert updated.status_code == 200
    assert _data(updated)["status"] == "SUSPENDED"
    assert _data(updated)["tax_number"] == "FR123456"

    bad_status = client.put(f"/tenant/{tenant.guid}", json={"status": "GONE"})
    assert bad_status.status_code == 400
    assert _error_code(bad_status) == "update_failed"

    deleted = client.delete(f"/tenant/{tenant.guid}")
    assert deleted.status_code == 200
    assert _data(deleted)["key"] == "acme-corp"


def test_referenced_rows_cannot_be_deleted(client, tenant_factory):
    tenant_factory("Acme Corp")
    france = _data(client.get("/master/country/FR"))
    response = client.delete(f"/master/country/{france['guid']}")
    assert response.status_code == 500
    assert _error_code(response) == "deletion_failed"
    assert client.get("/master/country/FR").status_code == 200


def test_provisioned_tenant(client, reference_data, monkeypatch):
    monkeypatch.setenv("FEATURE_TENANT_PROVISIONING_ENABLED", "true")
    refresh_feature_flag_cache()

    incomplete = client.post("/tenant", json=ACME)
    assert incomplete.status_code == 400
    assert _error_code(incomplete) == "validation_failed"

    payload = {
        **ACME,
        "subdomain": "acme",
        "database_name": "tenant_acme",
        "database_username": "acme_app",
        "database_password": "Sup3rSecret",
    }
    created = client.post("/tenant", json=payload)
    assert created.status_code == 201
    assert _data(created)["subdomain"] == "acme"
    assert "database_password" not in _data(created)

    by_subdomain = client.get("/tenant/search/subdomain/ACME")
    assert by_subdomain.status_code == 200
    assert _data(by_subdomain)["key"] == "acme-corp"

    taken = client.post("/tenant", json={**payload, "name": "Acme Two"})
    assert taken.status_code == 409


@pytest.mark.parametrize("path", ["/tenant/active/true", "/tenant/search/code/ACME"])
def test_tenant_has_no_active_or_code_routes(client, path):
    assert client.get(path).status_code == 404
