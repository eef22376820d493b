from billing.utils.passwords import hash_secret, is_hashed, verify_secret


def test_hash_and_verify_roundtrip():
    encoded = hash_secret("S3curePassw0rd")
    assert encoded != "S3curePassw0rd"
    assert is_hashed(encoded)
    assert verify_secret("S3curePassw0rd", encoded) is True
    assert verify_secret("wrong-password", encoded) is False


def test_hashes_are_salted():
    assert hash_secret("S3curePassw0rd") != hash_secret("S3curePassw0rd")


def test_verify_rejects_missing_or_malformed_hash():
    assert verify_secret("anything", None) is False
    assert verify_secret("", hash_secret("x")) is False
    assert verify_secret("anything", "not-a-hash") is False
    assert is_hashed("plain") is False
