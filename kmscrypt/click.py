from .config import (
    PROVIDERS,
    ConfigLoader,
    Configuration,
    ConfigurationError,
    MissingArgument,
    Operation,
    UnknownOption,
    UsageError,
)
from .cryption_utils import KMSCryptor
from .hex_utils import InvalidEncoding, bytes_to_hex, hex_to_bytes
from .kms_utils import RemoteServiceError, get_kms_manager
import click
import logging
import sys

PROG_NAME = "kmscrypt"

logger = logging.getLogger(__name__)


# Every command-line mistake exits with status 1 and names its kind.
class KMSCommand(click.Command):
    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except UsageError:
            raise
        except (click.BadOptionUsage, click.MissingParameter) as e:
            raise MissingArgument(e.format_message(), ctx=e.ctx) from e
        except click.BadParameter as e:
            raise UsageError(e.format_message(), ctx=e.ctx) from e
        except click.UsageError as e:
            raise UnknownOption(e.format_message(), ctx=e.ctx) from e


class MutuallyExclusiveOption(click.Option):
    def __init__(self, *args, **kwargs):
        self.mutually_exclusive = set(kwargs.pop("mutually_exclusive", []))
        help_text = kwargs.get("help", "")
        if self.mutually_exclusive:
            ex_str = ", ".join(sorted(self.mutually_exclusive))
            kwargs["help"] = (
                f"{help_text} NOTE: This option is mutually exclusive with: [{ex_str}]."
            )
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        if self.mutually_exclusive.intersection(opts) and self.name in opts:
            raise ConfigurationError(
                f"Illegal usage: `{self.name}` cannot be used with "
                f"`{', '.join(sorted(self.mutually_exclusive))}`.",
                ctx=ctx,
            )
        return super().handle_parse_result(ctx, opts, args)


def execute(configuration, provider, region=None, round_trip=False):
    """Run one encrypt or decrypt request and return the lines to print.

    The KMS client is acquired for the duration of the request and closed
    whether or not the request succeeds.
    """
    if configuration.operation is Operation.DECRYPT:
        ciphertext = hex_to_bytes(configuration.payload)

    with get_kms_manager(provider, region=region) as kms_manager:
        cryptor = KMSCryptor(kms_manager)

        if configuration.operation is Operation.ENCRYPT:
            ciphertext = cryptor.encrypt(
                configuration.key_id, configuration.payload.encode("utf-8")
            )
            lines = [f"Encrypted (hex): {bytes_to_hex(ciphertext)}"]
            if round_trip:
                decrypted = cryptor.decrypt(ciphertext, configuration.key_id)
                lines.append(f"Decrypted message: {decrypted}")
        else:
            decrypted = cryptor.decrypt(ciphertext, configuration.key_id)
            lines = [f"Decrypted message: {decrypted}"]

    return lines


def print_help(ctx, param, value):
    # Usage text always goes to standard error.
    if not value or ctx.resilient_parsing:
        return
    click.echo(ctx.get_help(), err=True, color=ctx.color)
    ctx.exit()


def configure_logging(verbose):
    """Log this package's records to standard error when `verbose` is set.

    Only the `kmscrypt` logger is touched. SDK loggers such as botocore's log
    request and response bodies, plaintext included, at DEBUG.
    """
    package_logger = logging.getLogger(PROG_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    if not verbose:
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    package_logger.propagate = False


@click.command(
    cls=KMSCommand,
    context_settings={"help_option_names": []},
    help="""
    Encrypt or decrypt a message with a remote key-management service (KMS).
    Ciphertext is printed and read as hex. Encryption requires a key ID; on
    AWS, decryption can do without one since the ciphertext names its key.
""",
)
@click.option(
    "-e",
    "--encrypt",
    metavar="MESSAGE",
    default=None,
    cls=MutuallyExclusiveOption,
    mutually_exclusive=["decrypt"],
    help="Encrypt MESSAGE (requires -k).",
)
@click.option(
    "-d",
    "--decrypt",
    metavar="HEX",
    default=None,
    cls=MutuallyExclusiveOption,
    mutually_exclusive=["encrypt", "round_trip"],
    help="Decrypt the hex-encoded ciphertext HEX.",
)
@click.option(
    "-k",
    "--key",
    metavar="KEY_ID",
    default=None,
    help="Key ID, ARN, alias or Cloud KMS key path.",
)
@click.option(
    "-h",
    "--help",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=print_help,
    help="Show this message and exit.",
)
@click.option(
    "-p",
    "--provider",
    type=click.Choice(PROVIDERS),
    default=None,
    help="KMS provider. Defaults to the configuration file, then aws.",
)
@click.option(
    "-r",
    "--region",
    default=None,
    help="AWS region of the key. Defaults to the configuration file, then the SDK default.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help=f"Configuration file. Defaults to ./.{PROG_NAME}.yaml if present.",
)
@click.option(
    "--round-trip",
    is_flag=True,
    default=False,
    cls=MutuallyExclusiveOption,
    mutually_exclusive=["decrypt"],
    help="Decrypt the new ciphertext again and print the result.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Log progress and requests to standard error.",
)
@click.pass_context
def cli(ctx, encrypt, decrypt, key, provider, region, config_path, round_trip, verbose):
    configure_logging(verbose)

    configuration = Configuration.from_options(encrypt, decrypt, key)

    try:
        settings = ConfigLoader.load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    provider = provider or settings.get("provider", "aws")
    region = region or settings.get("region")
    logger.debug("Using provider %s (region: %s)", provider, region or "default")

    try:
        lines = execute(configuration, provider, region=region, round_trip=round_trip)
    except (InvalidEncoding, RemoteServiceError) as e:
        raise click.ClickException(str(e)) from e

    for line in lines:
        click.echo(line)


def parse_arguments(args) -> Configuration:
    """Parse command-line arguments into a Configuration without running it."""
    with cli.make_context(PROG_NAME, list(args)) as ctx:
        params = ctx.params
        return Configuration.from_options(
            params["encrypt"], params["decrypt"], params["key"]
        )


def main():
    cli(prog_name=PROG_NAME)
