"""Common miscellaneous functions for the backup utility."""

import click

import secure_backup_utility.types


def conditional_echo_verbose(
    opts: secure_backup_utility.types.BackupConfig
    | secure_backup_utility.types.FingerprintOptions,
    message: str,
) -> None:
    """Echo verbose messages if verbose level is configured."""
    if _flag(opts, "verbose"):
        click.echo(message)


def conditional_echo_debug(
    opts: secure_backup_utility.types.BackupConfig
    | secure_backup_utility.types.FingerprintOptions,
    message: str,
) -> None:
    """Echo debug messages if debug level is configured."""
    if _flag(opts, "debug"):
        click.echo(message)


def _flag(opts: object, name: str) -> bool:
    # Configuration is a named tuple, command options are plain dicts
    if isinstance(opts, dict):
        return bool(opts.get(name, False))
    return bool(getattr(opts, name, False))
