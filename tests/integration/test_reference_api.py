import pytest

from billing.utils.feature_flags import refresh_feature_flag_cache

GERMANY = {
    "code": "de",
    "name_en": "Germany",
    "name_local": "Deutschland",
    "default_currency_code": "eur",
    "default_language_code": "DE",
    "phone_prefix": "+49",
    "timezone_default": "Europe/Berlin",
}


def _data(response):
    return response.json()["data"]


def _error_code(response):
    return response.json()["error"]["code"]


# Countries

def test_country_crud_flow(client):
    created = client.post("/master/country", json=GERMANY)
    assert created.status_code == 201
    country = _data(created)
    assert country["guid"] == 100001
    assert country["code"] == "DE"
    assert country["default_currency_code"] == "EUR"
    assert country["default_language_code"] == "de"
    assert country["active"] is True
    assert "id" not in country

    guid = country["guid"]
    for identifier in ("DE", "de", str(guid)):
        fetched = client.get(f"/master/country/{identifier}")
        assert fetched.status_code == 200
        assert _data(fetched)["guid"] == guid

    updated = client.put(f"/master/country/{guid}", json={"name_en": "Federal Republic of Germany"})
    assert updated.status_code == 200
    assert _data(updated)["name_en"] == "Federal Republic of Germany"
    assert _data(updated)["name_local"] == "Deutschland"

    deleted = client.delete(f"/master/country/{guid}")
    assert deleted.status_code == 200
    assert _data(deleted) == {"message": "Country deleted successfully", "guid": guid, "code": "DE",
                              "name_en": "Federal Republic of Germany"}
    assert client.get(f"/master/country/{guid}").status_code == 404


def test_country_create_errors(client):
    assert client.post("/master/country", json=GERMANY).status_code == 201

    duplicate = client.post("/master/country", json=GERMANY)
    assert duplicate.status_code == 409
    assert _error_code(duplicate) == "country_already_exists"

    missing = client.post("/master/country", json={**GERMANY, "code": "  "})
    assert missing.status_code == 400
    assert _error_code(missing) == "code_required"

    bad_code = client.post("/master/country", json={**GERMANY, "code": "DEU"})
    assert bad_code.status_code == 400
    assert _error_code(bad_code) == "invalid_code"

    bad_prefix = client.post("/master/country", json={**GERMANY, "code": "AT", "phone_prefix": "43"})
    assert bad_prefix.status_code == 400
    assert _error_code(bad_prefix) == "validation_failed"


def test_country_guid_checks(client):
    put_short = client.put("/master/country/123", json={"name_en": "X"})
    assert put_short.status_code == 400
    assert _error_code(put_short) == "invalid_guid"

    put_missing = client.put("/master/country/999999", json={"name_en": "Nowhere"})
    assert put_missing.status_code == 404
    assert _error_code(put_missing) == "country_not_found"

    delete_text = client.delete("/master/country/abc")
    assert delete_text.status_code == 400
    assert _error_code(delete_text) == "invalid_guid"

    delete_missing = client.delete("/master/country/42")
    assert delete_missing.status_code == 404


def test_oversized_identifiers(client, reference_data):
    huge = "99999999999999999999999"
    missing = client.get(f"/master/currency/{huge}")
    assert missing.status_code == 404
    assert _error_code(missing) == "currency_not_found"

    deleted = client.delete(f"/master/currency/{huge}")
    assert deleted.status_code == 404
    assert _error_code(deleted) == "currency_not_found"

    listed = client.get(f"/master/currency/list?offset={huge}")
    assert listed.status_code == 200
    assert _data(listed)["currencies"]["pagination"]["offset"] == 0


def test_country_search_by_code(client, reference_data):
    found = client.get("/master/country/search/code/fr")
    assert found.status_code == 200
    assert _data(found)["code"] == "FR"

    invalid = client.get("/master/country/search/code/FRA")
    assert invalid.status_code == 400
    assert _error_code(invalid) == "invalid_code_format"

    missing = client.get("/master/country/search/code/DE")
    assert missing.status_code == 404
    assert _error_code(missing) == "country_not_found"


def test_country_listings(client, reference_data, country_factory):
    country_factory("BE", "Belgium", "EUR", "fr", "+32", timezone_default="Europe/Brussels", active=False)

    listing = _data(client.get("/master/country/list"))["countries"]
    assert listing["pagination"] == {"offset": 0, "limit": 3, "count": 3}
    assert [item["code"] for item in listing["items"]] == ["FR", "US", "BE"]

    window = _data(client.get("/master/country/list?offset=1&limit=1"))["countries"]
    assert window["pagination"] == {"offset": 1, "limit": 1, "count": 1}
    assert window["items"][0]["code"] == "US"

    lenient = _data(client.get("/master/country/list?offset=-4&limit=5000abc"))["countries"]
    assert lenient["pagination"]["count"] == 3

    by_currency = _data(client.get("/master/country/list?default_currency_code=eur&active=true"))["countries"]
    assert [item["code"] for item in by_currency["items"]] == ["FR"]

    inactive = _data(client.get("/master/country/active/false"))["countries"]
    assert inactive["active"] is False
    assert [item["code"] for item in inactive["items"]] == ["BE"]

    by_timezone = _data(client.get("/master/country/timezone/Europe/Paris"))["countries"]
    assert by_timezone["timezone"] == "Europe/Paris"
    assert [item["code"] for item in by_timezone["items"]] == ["FR"]

    by_currency_route = _data(client.get("/master/country/currency/eur"))["countries"]
    assert by_currency_route["currency_code"] == "EUR"
    assert by_currency_route["pagination"]["count"] == 2

    by_language = _data(client.get("/master/country/language/EN"))["countries"]
    assert by_language["language_code"] == "en"
    assert [item["code"] for item in by_language["items"]] == ["US"]


def test_country_export_and_revision(client, reference_data, country_factory):
    country_factory("BE", "Belgium", "EUR", "fr", "+32", active=False)
    exported = _data(client.get("/master/country"))["countries"]
    assert [item["code"] for item in exported["items"]] == ["FR", "US"]
    assert exported["revision"] != "202501010000"

    revision = _data(client.get("/master/country/revision"))
    assert revision["revision"] == exported["revision"]
    assert "checked_at" in revision


def test_revision_default_when_table_is_empty(client):
    assert _data(client.get("/master/language/revision"))["revision"] == "202501010000"


# Currencies and languages

def test_currency_create_and_filter(client):
    created = client.post("/master/currency", json={"code": "chf", "name": "Swiss franc", "symbol": "Fr."})
    assert created.status_code == 201
    assert _data(created)["code"] == "CHF"
    assert _data(created)["decimal_places"] == 2

    client.post("/master/currency", json={"code": "XAU", "name": "Gold", "symbol": "oz", "active": False})
    active = _data(client.get("/master/currency/active/true"))["currencies"]
    assert [item["code"] for item in active["items"]] == ["CHF"]

    invalid = client.post("/master/currency", json={"code": "CH", "name": "Bad", "symbol": "?"})
    assert invalid.status_code == 400
    assert _error_code(invalid) == "invalid_code"

    missing_symbol = client.post("/master/currency", json={"code": "JPY", "name": "Yen"})
    assert _error_code(missing_symbol) == "symbol_required"

    bad_places = client.post("/master/currency", json={"code": "JPY", "name": "Yen", "symbol": "¥",
                                                       "decimal_places": 12})
    assert bad_places.status_code == 400
    assert _error_code(bad_places) == "validation_failed"


def test_language_create_and_lookup(client):
    created = client.post("/master/language", json={"code": "IT", "name_en": "Italian", "name_local": "Italiano"})
    assert created.status_code == 201
    assert _data(created)["code"] == "it"
    assert _data(client.get("/master/language/search/code/IT"))["name_local"] == "Italiano"

    missing_local = client.post("/master/language", json={"code": "es", "name_en": "Spanish"})
    assert missing_local.status_code == 400
    assert _error_code(missing_local) == "name_local_required"


# Tax rules

VAT = {"country_code": "fr", "tax_type": "VAT", "tax_name": "TVA", "tax_rate": "0.2", "applies_to": "license_fee"}


def test_tax_rule_create_and_search(client, reference_data):
    created = client.post("/master/tax-rule", json=VAT)
    assert created.status_code == 201
    rule = _data(created)
    assert rule["country_code"] == "FR"
    assert rule["tax_rate"] == 0.2
    assert rule["required_tax_number"] is True

    by_country = _data(client.get("/master/tax-rule/search/country/fr"))["tax_rules"]
    assert by_country["country_code"] == "FR"
    assert by_country["pagination"]["count"] == 1

    assert client.get("/master/tax-rule/search/type/VAT").status_code == 200
    assert client.get("/master/tax-rule/search/applies-to/license_fee").status_code == 200
    required = _data(client.get("/master/tax-rule/search/tax-number-required/true"))["tax_rules"]
    assert required["required_tax_number"] is True


@pytest.mark.parametrize("path,status,code", [
    ("/master/tax-rule/search/country/US", 404, "tax_rules_not_found"),
    ("/master/tax-rule/search/country/USA", 400, "invalid_country_code_format"),
    ("/master/tax-rule/search/type/GST", 404, "tax_rules_not_found"),
    ("/master/tax-rule/search/type/not-valid!", 400, "invalid_tax_type_format"),
    ("/master/tax-rule/search/tax-number-required/false", 404, "tax_rules_not_found"),
])
def test_tax_rule_search_errors(client, reference_data, path, status, code):
    client.post("/master/tax-rule", json=VAT)
    response = client.get(path)
    assert response.status_code == status
    assert _error_code(response) == code


def test_tax_rule_requires_fields_and_known_country(client, reference_data):
    missing = client.post("/master/tax-rule", json={k: v for k, v in VAT.items() if k != "applies_to"})
    assert _error_code(missing) == "applies_to_required"

    unknown = client.post("/master/tax-rule", json={**VAT, "country_code": "DE"})
    assert unknown.status_code == 400
    assert "does not exist" in unknown.json()["error"]["message"]


# Exchange rates

def _rate(client, source="usd", target="eur", rate="0.9", **extra):
    payload = {"from_currency_code": source, "to_currency_code": target, "exchange_rate": rate, "created_by": 1}
    payload.update(extra)
    return client.post("/master/exchange-rate", json=payload)


def test_exchange_rate_create_and_listings(client, reference_data):
    created = _rate(client)
    assert created.status_code == 201
    assert _data(created)["from_currency_code"] == "USD"
    assert _data(created)["exchange_rate"] == 0.9
    _rate(client, "eur", "usd", "1.1", current=False)

    same = _rate(client, "usd", "usd")
    assert same.status_code == 400
    assert _error_code(same) == "validation_failed"

    pair = _data(client.get("/master/exchange-rate/pair/usd/eur"))["exchange_rates"]
    assert pair["currency_pair"] == "USD/EUR"
    assert pair["current_only"] is False
    assert pair["pagination"]["count"] == 1

    by_currency = _data(client.get("/master/exchange-rate/currency/usd"))["exchange_rates"]
    assert by_currency["pagination"]["count"] == 2
    current = _data(client.get("/master/exchange-rate/currency/usd?current_only=true"))["exchange_rates"]
    assert current["pagination"]["count"] == 1

    historical = _data(client.get("/master/exchange-rate/current/false"))["exchange_rates"]
    assert historical["current"] is False
    assert historical["items"][0]["from_currency_code"] == "EUR"

    exported = _data(client.get("/master/exchange-rate"))["exchange_rates"]
    assert exported["pagination"]["count"] == 1

    modified = _data(client.get("/master/exchange-rate/last-modification"))
    assert modified["last_modification"] is not None


def test_exchange_rate_has_no_active_route(client):
    response = client.get("/master/exchange-rate/active/true")
    assert response.status_code == 404
    assert _error_code(response) == "route_not_found"


@pytest.mark.parametrize("path,code", [
    ("/master/exchange-rate/pair/usd/usd", "same_currency_pair"),
    ("/master/exchange-rate/pair/us/eur", "invalid_currency_code"),
    ("/master/exchange-rate/currency/dollars", "invalid_currency_code"),
    ("/master/exchange-rate/convert/abc/usd/eur", "invalid_amount"),
    ("/master/exchange-rate/convert/-5/usd/eur", "invalid_amount"),
    ("/master/exchange-rate/convert/1e30/usd/eur", "invalid_amount"),
    ("/master/exchange-rate/convert/10/usd/eu", "invalid_currency_code"),
])
def test_exchange_rate_bad_parameters(client, path, code):
    response = client.get(path)
    assert response.status_code == 400
    assert _error_code(response) == code


def test_convert_with_direct_rate(client, reference_data):
    rate_guid = _data(_rate(client))["guid"]
    result = _data(client.get("/master/exchange-rate/convert/100/usd/eur"))
    assert result["from_currency"] == "USD"
    assert result["to_currency"] == "EUR"
    assert result["original_amount"] == 100
    assert result["converted_amount"] == 90
    assert result["exchange_rate"] == 0.9
    assert result["inverse"] is False
    assert result["rate_guid"] == rate_guid
    assert "conversion_timestamp" in result


def test_convert_same_currency(client):
    result = _data(client.get("/master/exchange-rate/convert/42.5/eur/EUR"))
    assert result["converted_amount"] == 42.5
    assert result["exchange_rate"] == 1
    assert result["conversion_note"] == "Same currency conversion"


def test_convert_falls_back_to_inverse_rate(client, reference_data):
    _rate(client, "usd", "eur", "0.8")
    result = _data(client.get("/master/exchange-rate/convert/100/eur/usd"))
    assert result["inverse"] is True
    assert result["exchange_rate"] == 1.25
    assert result["converted_amount"] == 125
    assert result["currency_pair"] == "USD/EUR"


def test_convert_without_inverse_lookup(client, reference_data, monkeypatch):
    monkeypatch.setenv("FEATURE_INVERSE_RATE_LOOKUP_ENABLED", "false")
    refresh_feature_flag_cache()
    _rate(client, "usd", "eur", "0.8")
    response = client.get("/master/exchange-rate/convert/100/eur/usd")
    assert response.status_code == 404
    assert _error_code(response) == "exchange_rate_not_found"


def test_historical_rates_are_not_used_for_conversion(client, reference_data):
    _rate(client, "usd", "eur", "0.8", current=False)
    response = client.get("/master/exchange-rate/convert/100/usd/eur")
    assert response.status_code == 404
