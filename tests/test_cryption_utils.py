from kmscrypt.config import ConfigurationError
from kmscrypt.cryption_utils import KMSCryptor
import pytest


def test_encrypt_returns_blob_unchanged(stub_manager):
    cryptor = KMSCryptor(stub_manager)

    assert cryptor.encrypt("key1", b"hi") == b"hi:enc"
    assert stub_manager.calls == [("encrypt", "key1", b"hi")]


def test_encrypt_requires_key(stub_manager):
    with pytest.raises(ConfigurationError):
        KMSCryptor(stub_manager).encrypt("", b"hi")

    assert stub_manager.calls == []


def test_decrypt_returns_text(stub_manager):
    assert KMSCryptor(stub_manager).decrypt("héllo".encode()) == "héllo"


def test_decrypt_passes_key_only_when_given(stub_manager):
    cryptor = KMSCryptor(stub_manager)
    cryptor.decrypt(b"hi", "")
    cryptor.decrypt(b"hi", "key1")

    assert [call[1] for call in stub_manager.calls] == [None, "key1"]


def test_decrypt_replaces_undecodable_bytes(stub_manager):
    assert KMSCryptor(stub_manager).decrypt(b"h\xffi") == "h\ufffdi"
