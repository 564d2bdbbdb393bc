"""Secure backup utility exceptions."""


class BackupError(Exception):
    """Base class for errors that end a backup run."""


class ValidationError(BackupError):
    """Run configuration is missing or invalid."""


class NoFolder(ValidationError):
    """No folder was provided, or the path is not a directory."""


class NoPublicKey(ValidationError):
    """No trusted public key file was provided, or it does not exist."""


class NoPrivateKey(ValidationError):
    """No server private key file was provided, or it does not exist."""


class NoPassphrase(ValidationError):
    """No passphrase was provided for the signing key."""


class NoRegion(ValidationError):
    """No S3 bucket region was provided."""


class NoBucket(ValidationError):
    """No S3 bucket name was provided."""


class NoObjectKey(ValidationError):
    """No S3 object key was provided."""


class NoAccessKey(ValidationError):
    """No AWS access key was provided."""


class NoSecretKey(ValidationError):
    """No AWS secret key was provided."""


class InvalidFingerprint(ValidationError):
    """Provided signer fingerprint is not a hexadecimal key fingerprint."""


class ArchiveReadError(BackupError):
    """A file or directory could not be read while archiving."""


class KeyFormatError(BackupError):
    """Key material could not be read or parsed."""


class SignerAuthenticationError(BackupError):
    """No usable signer identity could be unlocked."""


class WrongPassphrase(SignerAuthenticationError):
    """The passphrase did not unlock the signing key."""


class NoSigner(SignerAuthenticationError):
    """No identity with usable private key material was found."""


class AmbiguousSigner(SignerAuthenticationError):
    """Several identities could sign, and no fingerprint selects one of them."""


class EncryptionFailed(BackupError):
    """Signing or encrypting the archive failed."""


class NoRecipients(EncryptionFailed):
    """There are no recipients to encrypt the archive for."""


class UploadFailed(BackupError):
    """The object store rejected the upload or could not be reached."""
