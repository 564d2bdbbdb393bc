"""Run configuration for the backup operation."""

import os
import pathlib
import re

import secure_backup_utility.exceptions
import secure_backup_utility.types

FINGERPRINT_PATTERN = re.compile(r"^(?:[0-9A-F]{40}|[0-9A-F]{64})$")


def normalize_fingerprint(fingerprint: str) -> str:
    """Strip whitespace from a key fingerprint and convert it to upper case."""
    return "".join(fingerprint.split()).upper()


def _is_dir(path: str) -> bool:
    return bool(path) and pathlib.Path(path).is_dir()


def _exists(path: str) -> bool:
    return bool(path) and pathlib.Path(path).exists()


def load_config(
    folder: str = "",
    public_key: str = "",
    private_key: str = "",
    signing_password: str = "",
    bucket: str = "",
    object_key: str = "",
    region: str = "",
    access_key: str = "",
    secret_key: str = "",
    signer_fingerprint: str = "",
    progress: bool = False,
    debug: bool = False,
    verbose: bool = False,
) -> secure_backup_utility.types.BackupConfig:
    """Validate the provided options and build the run configuration.

    Nothing is read or contacted apart from checking that the provided
    paths exist. AWS credentials are only taken from the arguments.
    """
    signing_password = (
        signing_password
        if signing_password
        else os.environ.get(
            "SECURE_BACKUP_SIGNING_PASSWORD",
            "",
        )
    )
    signer_fingerprint = normalize_fingerprint(
        signer_fingerprint
        if signer_fingerprint
        else os.environ.get(
            "SECURE_BACKUP_SIGNER_FINGERPRINT",
            "",
        )
    )

    if not _is_dir(folder):
        raise secure_backup_utility.exceptions.NoFolder

    if not _exists(public_key):
        raise secure_backup_utility.exceptions.NoPublicKey

    if not _exists(private_key):
        raise secure_backup_utility.exceptions.NoPrivateKey

    if not signing_password:
        raise secure_backup_utility.exceptions.NoPassphrase

    if not region:
        raise secure_backup_utility.exceptions.NoRegion

    if not bucket:
        raise secure_backup_utility.exceptions.NoBucket

    if not object_key:
        raise secure_backup_utility.exceptions.NoObjectKey

    if not access_key:
        raise secure_backup_utility.exceptions.NoAccessKey

    if not secret_key:
        raise secure_backup_utility.exceptions.NoSecretKey

    if signer_fingerprint and not FINGERPRINT_PATTERN.match(signer_fingerprint):
        raise secure_backup_utility.exceptions.InvalidFingerprint

    return secure_backup_utility.types.BackupConfig(
        folder=pathlib.Path(folder),
        public_key_path=pathlib.Path(public_key),
        private_key_path=pathlib.Path(private_key),
        signing_password=signing_password,
        bucket=bucket,
        object_key=object_key,
        region=region,
        access_key=access_key,
        secret_key=secret_key,
        signer_fingerprint=signer_fingerprint,
        progress=progress if not debug else False,
        debug=debug,
        verbose=verbose,
    )
