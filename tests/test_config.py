from kmscrypt.config import (
    ConfigLoader,
    Configuration,
    ConfigurationError,
    Operation,
)
import pytest


def test_encrypt_configuration():
    config = Configuration.from_options(encrypt="hi", key="key1")
    assert config == Configuration(Operation.ENCRYPT, "hi", "key1")


def test_decrypt_without_key():
    config = Configuration.from_options(decrypt="6869")
    assert config.operation is Operation.DECRYPT
    assert config.key_id == ""


def test_configuration_is_immutable():
    config = Configuration.from_options(decrypt="6869")
    with pytest.raises(AttributeError):
        config.key_id = "other"


@pytest.mark.parametrize(
    "options",
    [
        {},
        {"key": "key1"},
        {"encrypt": "hi", "decrypt": "6869", "key": "key1"},
        {"encrypt": "hi"},
        {"encrypt": "hi", "key": ""},
    ],
)
def test_invalid_option_combinations(options):
    with pytest.raises(ConfigurationError):
        Configuration.from_options(**options)


def test_configuration_error_exits_with_status_one():
    assert ConfigurationError("bad").exit_code == 1


def test_missing_default_config_file_is_empty(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert ConfigLoader.load_config() == {}


def test_default_config_file_named_after_program(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sys.argv", ["/usr/local/bin/kmscrypt"])
    (tmp_path / ".kmscrypt.yaml").write_text("provider: gcp\n")

    assert ConfigLoader.get_config_path() == tmp_path / ".kmscrypt.yaml"
    assert ConfigLoader.load_config() == {"provider": "gcp"}


def test_load_explicit_config(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("provider: aws\nregion: eu-west-1\n")

    assert ConfigLoader.load_config(path) == {
        "provider": "aws",
        "region": "eu-west-1",
    }


def test_missing_explicit_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader.load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "empty"),
        ("- aws\n", "mapping"),
        ("provider: azure\n", "Unsupported provider"),
        ("colour: blue\n", "Unknown configuration key"),
        ("provider: [aws\n", "Error parsing YAML"),
    ],
)
def test_invalid_config(tmp_path, content, message):
    path = tmp_path / "settings.yaml"
    path.write_text(content)

    with pytest.raises(ValueError, match=message):
        ConfigLoader.load_config(path)
