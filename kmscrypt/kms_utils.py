from . import get_project_id
from .config import ConfigurationError
from abc import ABC, abstractmethod
from botocore.exceptions import BotoCoreError, ClientError
from google.api_core import exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import kms_v1
import boto3
import logging

logger = logging.getLogger(__name__)


class RemoteServiceError(Exception):
    pass


class UnifiedKMSManager(ABC):
    """A handle on a remote key-management service.

    The manager owns the underlying SDK client. Use it as a context manager so
    the client is released on every exit path.
    """

    def __init__(self, provider):
        self.cloud_provider = provider

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    @abstractmethod
    def encrypt(self, key_id, plaintext) -> bytes:
        """Encrypt `plaintext` under `key_id` and return the ciphertext blob."""
        pass

    @abstractmethod
    def decrypt(self, ciphertext, key_id=None) -> bytes:
        """Decrypt a ciphertext blob and return the plaintext bytes."""
        pass

    @abstractmethod
    def close(self):
        pass


class GCPKMSManager(UnifiedKMSManager):
    def __init__(self):
        super().__init__("gcp")
        try:
            self.client = kms_v1.KeyManagementServiceClient()
        except GoogleAuthError as e:
            raise RemoteServiceError(f"Failed to create the KMS client: {e}") from e

    def parse_key_path(self, key_path: str) -> tuple[str, str, str, str]:
        """
        Parse a Google Cloud KMS resource string into its component parts.

        Args:
            key_path: A string in the format
                "projects/{project}/locations/{location}/keyRings/{keyring}/cryptoKeys/{key}"
                or the short form "{location}/{keyring}/{key}", in which case
                the project is the one of the default credentials.

        Returns:
            A tuple containing (project_id, location, key_ring, key_id)

        Raises:
            ConfigurationError: If the string doesn't match either format
        """
        parts = key_path.split("/")

        if len(parts) == 3 and all(parts):
            location, key_ring, key_id = parts
            return (get_project_id(), location, key_ring, key_id)

        # Validate format
        if (
            len(parts) != 8
            or parts[0] != "projects"
            or parts[2] != "locations"
            or parts[4] != "keyRings"
            or parts[6] != "cryptoKeys"
        ):
            raise ConfigurationError(f"Invalid KMS key path format: {key_path}")

        project_id = parts[1]
        location = parts[3]
        key_ring = parts[5]
        key_id = parts[7]

        return (project_id, location, key_ring, key_id)

    @staticmethod
    def _error_message(e):
        # google.auth errors have no `message`.
        return getattr(e, "message", None) or str(e)

    def _get_key_path(self, key_path):
        return self.client.crypto_key_path(*self.parse_key_path(key_path))

    def encrypt(self, key_id, plaintext) -> bytes:
        key_path = self._get_key_path(key_id)
        logger.debug("Encrypting %d bytes with %s", len(plaintext), key_path)

        try:
            response = self.client.encrypt(
                request={"name": key_path, "plaintext": plaintext}
            )
        except (exceptions.GoogleAPIError, GoogleAuthError) as e:
            raise RemoteServiceError(
                f"Failed to encrypt: {self._error_message(e)}"
            ) from e

        return bytes(response.ciphertext)

    def decrypt(self, ciphertext, key_id=None) -> bytes:
        # Cloud KMS ciphertext does not carry the key name.
        if not key_id:
            raise ConfigurationError(
                "A key ID is required to decrypt with Cloud KMS. Use -k/--key."
            )

        key_path = self._get_key_path(key_id)
        logger.debug("Decrypting %d bytes with %s", len(ciphertext), key_path)

        try:
            response = self.client.decrypt(
                request={"name": key_path, "ciphertext": ciphertext}
            )
        except (exceptions.GoogleAPIError, GoogleAuthError) as e:
            raise RemoteServiceError(
                f"Failed to decrypt: {self._error_message(e)}"
            ) from e

        return bytes(response.plaintext)

    def close(self):
        logger.debug("Closing the Cloud KMS client")
        self.client.transport.close()


class AWSKMSManager(UnifiedKMSManager):
    def __init__(self, region=None):
        super().__init__("aws")
        try:
            self.client = boto3.client("kms", region_name=region)
        except BotoCoreError as e:
            raise RemoteServiceError(f"Failed to create the KMS client: {e}") from e

    @staticmethod
    def _error_message(e):
        if isinstance(e, ClientError):
            return e.response.get("Error", {}).get("Message") or str(e)
        return str(e)

    def encrypt(self, key_id, plaintext) -> bytes:
        logger.debug(
            "Encrypting %d bytes with %s in %s",
            len(plaintext),
            key_id,
            self.client.meta.region_name,
        )

        try:
            response = self.client.encrypt(KeyId=key_id, Plaintext=plaintext)
        except (ClientError, BotoCoreError) as e:
            raise RemoteServiceError(
                f"Failed to encrypt: {self._error_message(e)}"
            ) from e

        return response["CiphertextBlob"]

    def decrypt(self, ciphertext, key_id=None) -> bytes:
        params = {"CiphertextBlob": ciphertext}
        if key_id:
            params["KeyId"] = key_id

        logger.debug("Decrypting %d bytes with %s", len(ciphertext), key_id or "(embedded key)")

        try:
            response = self.client.decrypt(**params)
        except (ClientError, BotoCoreError) as e:
            raise RemoteServiceError(
                f"Failed to decrypt: {self._error_message(e)}"
            ) from e

        return response["Plaintext"]

    def close(self):
        logger.debug("Closing the AWS KMS client")
        self.client.close()


def get_kms_manager(provider, region=None):
    if provider == "aws":
        return AWSKMSManager(region=region)
    elif provider == "gcp":
        return GCPKMSManager()
    else:
        raise ValueError(f"Unsupported provider: `{provider}'.")
