"""Common types for the secure backup utility."""

import enum
import pathlib
import typing

import pgpy

# Secure backup utility constants

# Timestamp stored for every archive entry. ZIP can't represent dates before
# 1980, and a fixed value keeps archives of an unchanged folder identical.
ARCHIVE_TIMESTAMP: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)

# Process exit codes, one per error kind.
EXIT_OK: int = 0
EXIT_INVALID_CONFIG: int = 3
EXIT_ARCHIVE_FAILED: int = 4
EXIT_KEY_FORMAT: int = 5
EXIT_SIGNER_AUTHENTICATION: int = 6
EXIT_ENCRYPTION_FAILED: int = 7
EXIT_UPLOAD_FAILED: int = 8
EXIT_UNHANDLED: int = 42
EXIT_INTERRUPTED: int = 130


class BackupOptions(typing.TypedDict):
    """Type definitions for backup command options."""

    folder: str
    public_key: str
    private_key: str
    signing_password: str
    bucket: str
    object_key: str
    region: str
    access_key: str
    secret_key: str
    signer_fingerprint: str
    progress: bool
    debug: bool
    verbose: bool


class FingerprintOptions(typing.TypedDict):
    """Type definitions for fingerprints command options."""

    path: pathlib.Path
    debug: bool
    verbose: bool


class BackupConfig(typing.NamedTuple):
    """Validated configuration for a single backup run."""

    folder: pathlib.Path
    public_key_path: pathlib.Path
    private_key_path: pathlib.Path
    signing_password: str
    bucket: str
    object_key: str
    region: str
    access_key: str
    secret_key: str
    signer_fingerprint: str = ""
    progress: bool = False
    debug: bool = False
    verbose: bool = False

    def __repr__(self) -> str:
        """Represent the configuration without the secrets."""
        shown = self._replace(signing_password="***", secret_key="***")
        fields = ", ".join(
            f"{name}={value!r}" for name, value in zip(self._fields, shown)
        )
        return f"BackupConfig({fields})"


class ArchiveFile(typing.TypedDict):
    """Type definitions for a file to be added to the archive."""

    # Relative path inside the archive, always using forward slashes
    path: str
    localpath: pathlib.Path
    size: int


class KeyRing(typing.TypedDict):
    """Type definitions for the keys used in a backup run."""

    recipients: list[pgpy.PGPKey]
    signer: pgpy.PGPKey
    passphrase: str


class KeyDescription(typing.TypedDict):
    """Type definitions for a key listing entry."""

    fingerprint: str
    private: bool
    protected: bool
    userids: list[str]


class PipelineState(enum.Enum):
    """States of a backup run, in the order they are entered."""

    VALIDATING = 0
    ARCHIVING = 1
    KEY_LOADING = 2
    ENCRYPTING = 3
    UPLOADING = 4
    DONE = 5
    FAILED = 6


class BackupRun(typing.TypedDict):
    """Type definitions for the state of a backup run."""

    state: PipelineState
