from kmscrypt.kms_utils import UnifiedKMSManager
import pytest


class StubKMSManager(UnifiedKMSManager):
    """Echoes plaintext with an `:enc` suffix and decrypts blobs as-is."""

    def __init__(self):
        super().__init__("stub")
        self.calls = []
        self.closed = False

    def encrypt(self, key_id, plaintext) -> bytes:
        self.calls.append(("encrypt", key_id, plaintext))
        return plaintext + b":enc"

    def decrypt(self, ciphertext, key_id=None) -> bytes:
        self.calls.append(("decrypt", key_id, ciphertext))
        return ciphertext

    def close(self):
        self.closed = True


@pytest.fixture
def stub_manager():
    return StubKMSManager()


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
