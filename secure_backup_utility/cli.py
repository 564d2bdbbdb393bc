"""CLI for backing up folders to S3 as signed and encrypted archives."""

import asyncio
import pathlib
import sys

import click

import secure_backup_utility.backup
import secure_backup_utility.types


@click.command()
@click.option("--folder", default="", help="Path to the folder to back up.")
@click.option(
    "--tpubkey",
    default="",
    help="Path to the trusted public key(s) used for encryption.",
)
@click.option(
    "--sprivkey",
    default="",
    help="Path to the server private key used for signing.",
)
@click.option(
    "--signingpassword",
    default="",
    help="Password for the signing key. Can also be set with SECURE_BACKUP_SIGNING_PASSWORD.",
)
@click.option(
    "--signer-fingerprint",
    default="",
    help="Fingerprint of the signing key, required if the server key file holds several private keys.",
)
@click.option("--bucket", default="", help="S3 bucket name.")
@click.option("--s3key", default="", help="Key name to use in S3.")
@click.option("--aws-region", default="", help="AWS bucket region.")
@click.option("--aws-access-key", default="", help="AWS access key.")
@click.option("--aws-secret-key", default="", help="AWS secret key.")
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
@click.option(
    "--progress/--no-progress", default=True, help="Display archiving progress information."
)
def backup(
    folder: str,
    tpubkey: str,
    sprivkey: str,
    signingpassword: str,
    signer_fingerprint: str,
    bucket: str,
    s3key: str,
    aws_region: str,
    aws_access_key: str,
    aws_secret_key: str,
    verbose: bool,
    debug: bool,
    progress: bool,
) -> None:
    """Archive, sign and encrypt a folder, and upload it to S3."""
    if progress and debug:
        click.echo("Progress can't be reliably printed with debug information.", err=True)
        click.echo("Progress will not be displayed while debug mode is used.", err=True)

    opts: secure_backup_utility.types.BackupOptions = {
        "folder": folder,
        "public_key": tpubkey,
        "private_key": sprivkey,
        "signing_password": signingpassword,
        "bucket": bucket,
        "object_key": s3key,
        "region": aws_region,
        "access_key": aws_access_key,
        "secret_key": aws_secret_key,
        "signer_fingerprint": signer_fingerprint,
        "progress": progress if not debug else False,
        "debug": debug,
        "verbose": verbose,
    }

    ret = 0
    try:
        ret = asyncio.run(secure_backup_utility.backup.wrap_backup_exceptions(opts))
    except KeyboardInterrupt:
        ret = secure_backup_utility.types.EXIT_INTERRUPTED
    sys.exit(ret)


@click.command()
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
@click.argument("path")
def fingerprints(
    path: str,
    verbose: bool,
    debug: bool,
) -> None:
    """Display the fingerprints of the keys in an armored key file."""
    plpath = pathlib.Path(path)
    if not plpath.is_file():
        click.echo("Could not access the provided path.", err=True)
        sys.exit(secure_backup_utility.types.EXIT_INVALID_CONFIG)

    opts: secure_backup_utility.types.FingerprintOptions = {
        "path": plpath,
        "debug": debug,
        "verbose": verbose,
    }

    sys.exit(secure_backup_utility.backup.list_fingerprints(opts))


@click.group()
def wrap():
    """Group CLI functions into a single tool to simplify using pyinstaller."""
    pass


wrap.add_command(backup)
wrap.add_command(fingerprints)


if __name__ == "__main__":
    wrap()
