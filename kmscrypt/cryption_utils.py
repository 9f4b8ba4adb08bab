from .config import ConfigurationError
import logging

logger = logging.getLogger(__name__)


class KMSCryptor:
    def __init__(self, kms_manager):
        self.kms_manager = kms_manager

    def encrypt(self, key_id, plaintext: bytes) -> bytes:
        if not key_id:
            raise ConfigurationError("A key ID is required for encryption.")

        logger.info("Encrypting...")
        return self.kms_manager.encrypt(key_id, plaintext)

    def decrypt(self, ciphertext: bytes, key_id=None) -> str:
        logger.info("Decrypting...")
        plaintext = self.kms_manager.decrypt(ciphertext, key_id or None)

        # The plaintext is only ever displayed.
        return plaintext.decode("utf-8", errors="replace")
