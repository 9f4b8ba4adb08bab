from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import click
import sys
import yaml


PROVIDERS = ("aws", "gcp")
SETTINGS_KEYS = ("provider", "region")


class UsageError(click.UsageError):
    exit_code = 1

    def __init__(self, message, ctx=None):
        super().__init__(message, ctx or click.get_current_context(silent=True))


class MissingArgument(UsageError):
    pass


class UnknownOption(UsageError):
    pass


class ConfigurationError(UsageError):
    pass


class Operation(Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


@dataclass(frozen=True)
class Configuration:
    operation: Operation
    payload: str
    key_id: str = ""

    @classmethod
    def from_options(cls, encrypt=None, decrypt=None, key=None):
        """Build a configuration from the parsed -e/-d/-k values.

        Exactly one of `encrypt` and `decrypt` must be given. A key is required
        to encrypt; on decrypt it is optional since the ciphertext identifies
        its own key.
        """
        if encrypt is not None and decrypt is not None:
            raise ConfigurationError(
                "Illegal usage: `encrypt` cannot be used with `decrypt`."
            )

        if encrypt is None and decrypt is None:
            raise ConfigurationError(
                "One of -e/--encrypt or -d/--decrypt is required."
            )

        if encrypt is not None:
            if not key:
                raise ConfigurationError(
                    "A key ID is required for encryption. Use -k/--key."
                )
            return cls(Operation.ENCRYPT, encrypt, key)

        return cls(Operation.DECRYPT, decrypt, key or "")


class ConfigLoader:
    @staticmethod
    def get_program_name() -> str:
        """Get the program name without extension."""
        program_path = sys.argv[0]
        return Path(program_path).stem

    @staticmethod
    def get_config_path() -> Path:
        """Get the configuration file path."""
        program_name = ConfigLoader.get_program_name()
        config_filename = f".{program_name}.yaml"
        return Path.cwd() / config_filename

    @classmethod
    def verify_config(cls, config):
        if not config:
            raise ValueError("Configuration is None or empty")

        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(config).__name__}")

        unknown = sorted(set(config) - set(SETTINGS_KEYS))
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")

        provider = config.get("provider")
        if provider is not None and provider not in PROVIDERS:
            raise ValueError(f"Unsupported provider: `{provider}'.")

        return True

    @classmethod
    def load_config(cls, config_path=None) -> dict:
        """Load the YAML configuration file.

        An explicitly given path must exist. The default file in the current
        directory is optional, and an empty configuration is returned when it
        is absent.
        """
        if config_path is None:
            config_path = cls.get_config_path()
            if not config_path.exists():
                return {}

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file '{config_path}' not found")

        try:
            with open(config_path, "r") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing YAML configuration: {str(e)}")

        ConfigLoader.verify_config(config)

        return config
