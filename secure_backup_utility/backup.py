"""Folder backup operation."""

import asyncio
import typing

import click

import secure_backup_utility.archive
import secure_backup_utility.common
import secure_backup_utility.config
import secure_backup_utility.exceptions
import secure_backup_utility.keyring
import secure_backup_utility.s3_client
import secure_backup_utility.signer
import secure_backup_utility.types

PipelineState = secure_backup_utility.types.PipelineState

# Each state can only be left for the one that follows it (or for FAILED)
_NEXT_STATE: dict[PipelineState, PipelineState] = {
    PipelineState.VALIDATING: PipelineState.ARCHIVING,
    PipelineState.ARCHIVING: PipelineState.KEY_LOADING,
    PipelineState.KEY_LOADING: PipelineState.ENCRYPTING,
    PipelineState.ENCRYPTING: PipelineState.UPLOADING,
    PipelineState.UPLOADING: PipelineState.DONE,
}

_VALIDATION_MESSAGES: dict[type[Exception], str] = {
    secure_backup_utility.exceptions.NoFolder: "Invalid or missing folder path.",
    secure_backup_utility.exceptions.NoPublicKey: "Invalid or missing trusted public key path.",
    secure_backup_utility.exceptions.NoPrivateKey: "Invalid or missing server private key path.",
    secure_backup_utility.exceptions.NoPassphrase: "Invalid or missing signing key password.",
    secure_backup_utility.exceptions.NoRegion: "Invalid or missing S3 bucket region.",
    secure_backup_utility.exceptions.NoBucket: "Invalid or missing S3 bucket name.",
    secure_backup_utility.exceptions.NoObjectKey: "Invalid or missing S3 key name.",
    secure_backup_utility.exceptions.NoAccessKey: "Invalid or missing AWS access key.",
    secure_backup_utility.exceptions.NoSecretKey: "Invalid or missing AWS secret key.",
    secure_backup_utility.exceptions.InvalidFingerprint: "Signer fingerprint must be 40 or 64 hexadecimal digits.",
}


def advance(
    run: secure_backup_utility.types.BackupRun,
    config: secure_backup_utility.types.BackupConfig,
    state: PipelineState,
) -> None:
    """Move the run forward to the next state."""
    if _NEXT_STATE.get(run["state"]) is not state:
        raise RuntimeError(
            f"Backup can't move from {run['state'].name} to {state.name}"
        )
    secure_backup_utility.common.conditional_echo_debug(
        config, f"Backup state {run['state'].name} -> {state.name}"
    )
    run["state"] = state


async def backup(
    config: secure_backup_utility.types.BackupConfig,
    run: secure_backup_utility.types.BackupRun,
) -> int:
    """Archive, sign and encrypt, and upload a folder."""
    advance(run, config, PipelineState.ARCHIVING)
    archive = await secure_backup_utility.archive.archive_folder(config)

    advance(run, config, PipelineState.KEY_LOADING)
    keyring = secure_backup_utility.keyring.load_keyring(config)

    advance(run, config, PipelineState.ENCRYPTING)
    artifact = secure_backup_utility.signer.encrypt_and_sign(archive, keyring)
    del archive, keyring

    advance(run, config, PipelineState.UPLOADING)
    await secure_backup_utility.s3_client.s3_upload_artifact(config, artifact)
    del artifact

    advance(run, config, PipelineState.DONE)
    click.echo(f"Successfully uploaded data to {config.bucket}/{config.object_key}")

    return secure_backup_utility.types.EXIT_OK


async def wrap_backup_exceptions(opts: secure_backup_utility.types.BackupOptions) -> int:
    """Wrap the backup operation with required exception handling."""
    run: secure_backup_utility.types.BackupRun = {
        "state": PipelineState.VALIDATING,
    }
    try:
        config = secure_backup_utility.config.load_config(
            folder=opts["folder"],
            public_key=opts["public_key"],
            private_key=opts["private_key"],
            signing_password=opts["signing_password"],
            bucket=opts["bucket"],
            object_key=opts["object_key"],
            region=opts["region"],
            access_key=opts["access_key"],
            secret_key=opts["secret_key"],
            signer_fingerprint=opts["signer_fingerprint"],
            progress=opts["progress"],
            debug=opts["debug"],
            verbose=opts["verbose"],
        )
    except secure_backup_utility.exceptions.ValidationError as e:
        click.echo(
            f"Error: {_VALIDATION_MESSAGES.get(type(e), 'Invalid configuration.')}",
            err=True,
        )
        return secure_backup_utility.types.EXIT_INVALID_CONFIG

    secure_backup_utility.common.conditional_echo_debug(config, f"Using {config!r}")

    exc: typing.Any = None
    ret = secure_backup_utility.types.EXIT_OK
    try:
        ret = await backup(config, run)
    except asyncio.CancelledError:
        click.echo("Received a keyboard interrupt, aborting...", err=True)
        ret = secure_backup_utility.types.EXIT_INTERRUPTED
    except secure_backup_utility.exceptions.ArchiveReadError as e:
        click.echo(f"Could not archive the folder: {e}", err=True)
        ret = secure_backup_utility.types.EXIT_ARCHIVE_FAILED
    except secure_backup_utility.exceptions.KeyFormatError as e:
        click.echo(f"Could not load the keys: {e}", err=True)
        click.echo("Check that the key files contain armored OpenPGP keys.", err=True)
        ret = secure_backup_utility.types.EXIT_KEY_FORMAT
    except secure_backup_utility.exceptions.WrongPassphrase as e:
        click.echo(f"Could not unlock the signing key: {e}", err=True)
        click.echo("Check that the signing key password is correct.", err=True)
        ret = secure_backup_utility.types.EXIT_SIGNER_AUTHENTICATION
    except secure_backup_utility.exceptions.AmbiguousSigner as e:
        click.echo(f"Could not choose the signing key: {e}", err=True)
        click.echo(
            "Use --signer-fingerprint to select the key used for signing.", err=True
        )
        ret = secure_backup_utility.types.EXIT_SIGNER_AUTHENTICATION
    except secure_backup_utility.exceptions.SignerAuthenticationError as e:
        click.echo(f"No usable signing key: {e}", err=True)
        ret = secure_backup_utility.types.EXIT_SIGNER_AUTHENTICATION
    except secure_backup_utility.exceptions.EncryptionFailed as e:
        click.echo(f"Could not encrypt the archive: {e}", err=True)
        ret = secure_backup_utility.types.EXIT_ENCRYPTION_FAILED
    except secure_backup_utility.exceptions.UploadFailed as e:
        click.echo(f"Could not upload the archive: {e}", err=True)
        click.echo(
            "Check the bucket, region and credentials. Nothing was retried.", err=True
        )
        ret = secure_backup_utility.types.EXIT_UPLOAD_FAILED
    except Exception as e:
        ret = secure_backup_utility.types.EXIT_UNHANDLED
        exc = e
    finally:
        if ret != secure_backup_utility.types.EXIT_OK:
            click.echo(
                f"Backup failed in state {run['state'].name}, nothing else was done.",
                err=True,
            )
            run["state"] = PipelineState.FAILED
        # Unhandled exceptions get the traceback banner before bubbling up
        if exc is not None:
            click.echo("Program encountered an unhandled exception.", err=True)
            click.echo(
                "If you think there's a mistake, copy this message and lines after it, and include it in your support request for diagnostic purposes.",
                err=True,
            )
            click.echo("Exception details:", err=True)
            click.echo(
                "-------------------------- BEGIN EXCEPTION TRACEBACK --------------------------"
            )
            raise exc

    return ret


def list_fingerprints(opts: secure_backup_utility.types.FingerprintOptions) -> int:
    """Display the fingerprints of the keys in a key file."""
    secure_backup_utility.common.conditional_echo_debug(
        opts, f"Reading keys from {opts['path']}"
    )
    try:
        keys = secure_backup_utility.keyring.describe_keys(
            secure_backup_utility.keyring.read_key_file(opts["path"])
        )
    except secure_backup_utility.exceptions.KeyFormatError as e:
        click.echo(f"Could not load the keys: {e}", err=True)
        return secure_backup_utility.types.EXIT_KEY_FORMAT

    for key in keys:
        kind = "sec" if key["private"] else "pub"
        protected = " (passphrase protected)" if key["protected"] else ""
        click.echo(f"{kind}  {key['fingerprint']}{protected}")
        for uid in key["userids"]:
            click.echo(f"      {uid}")

    return secure_backup_utility.types.EXIT_OK
