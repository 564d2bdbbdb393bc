"""Folder archiving operation."""

import io
import pathlib
import stat
import typing
import zipfile

import aiofiles
import click

import secure_backup_utility.common
import secure_backup_utility.exceptions
import secure_backup_utility.types


def _walk_directory(
    config: secure_backup_utility.types.BackupConfig,
    directory: pathlib.Path,
    files: list[secure_backup_utility.types.ArchiveFile],
) -> None:
    """Add the regular files under a directory, sorted by name on every level."""
    try:
        children = sorted(directory.iterdir(), key=lambda child: child.name)
    except OSError as e:
        raise secure_backup_utility.exceptions.ArchiveReadError(
            f"Could not list directory {directory}: {e}"
        ) from e

    for child in children:
        # Symlinks are not followed, whether they point to a file or a directory
        if child.is_symlink():
            secure_backup_utility.common.conditional_echo_verbose(
                config, f"Skipping symbolic link {child}"
            )
            continue

        try:
            child_stat = child.stat()
        except OSError as e:
            raise secure_backup_utility.exceptions.ArchiveReadError(
                f"Could not access {child}: {e}"
            ) from e

        if stat.S_ISDIR(child_stat.st_mode):
            _walk_directory(config, child, files)
        elif stat.S_ISREG(child_stat.st_mode):
            to_add: secure_backup_utility.types.ArchiveFile = {
                "path": child.relative_to(config.folder).as_posix(),
                "localpath": child,
                "size": child_stat.st_size,
            }
            secure_backup_utility.common.conditional_echo_debug(
                config, f"Adding file {to_add['path']} to the archive."
            )
            files.append(to_add)
        else:
            secure_backup_utility.common.conditional_echo_verbose(
                config, f"Skipping special file {child}"
            )


def collect_files(
    config: secure_backup_utility.types.BackupConfig,
) -> list[secure_backup_utility.types.ArchiveFile]:
    """Gather the regular files of the backup folder in archive order."""
    files: list[secure_backup_utility.types.ArchiveFile] = []
    _walk_directory(config, config.folder, files)
    return files


async def archive_files(
    config: secure_backup_utility.types.BackupConfig,
    files: list[secure_backup_utility.types.ArchiveFile],
    bar: typing.Any,
) -> bytes:
    """Pack the files into an in-memory ZIP archive.

    The archive is only returned after it has been closed, so the central
    directory is always present. A read error discards the whole archive.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for file in files:
            try:
                async with aiofiles.open(file["localpath"], "rb") as f:
                    content = await f.read()
            except OSError as e:
                raise secure_backup_utility.exceptions.ArchiveReadError(
                    f"Could not read {file['localpath']}: {e}"
                ) from e

            # Fix the metadata that would otherwise differ between runs
            info = zipfile.ZipInfo(
                file["path"], date_time=secure_backup_utility.types.ARCHIVE_TIMESTAMP
            )
            info.compress_type = zipfile.ZIP_DEFLATED
            info.create_system = 3
            info.external_attr = (stat.S_IFREG | 0o644) << 16
            try:
                zf.writestr(info, content)
            except UnicodeEncodeError as e:
                raise secure_backup_utility.exceptions.ArchiveReadError(
                    f"Can't store file name {file['localpath']!r} in the archive: {e}"
                ) from e

            if bar:
                bar.update(len(content))

    return buffer.getvalue()


async def archive_folder(config: secure_backup_utility.types.BackupConfig) -> bytes:
    """Archive all regular files in the backup folder."""
    secure_backup_utility.common.conditional_echo_verbose(
        config, f"Gathering a list of files in {config.folder}..."
    )
    files = collect_files(config)
    size = sum(file["size"] for file in files)

    if config.progress:
        # Can't annotate progress bar without using click internal vars
        with click.progressbar(  # type: ignore
            length=size, label=f"Archiving {config.folder}"
        ) as bar:
            archive = await archive_files(config, files, bar)
    else:
        archive = await archive_files(config, files, None)

    secure_backup_utility.common.conditional_echo_verbose(
        config,
        f"Archived {len(files)} files ({size} bytes) into {len(archive)} bytes.",
    )
    return archive


def list_archive_entries(archive: bytes) -> list[tuple[str, bytes]]:
    """List the entries of an archive as (path, content) in stored order."""
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return [(info.filename, zf.read(info)) for info in zf.infolist()]
