"""OpenPGP key loading and signer unlocking."""

import contextlib
import pathlib
import re
import typing

import pgpy
import pgpy.errors

import secure_backup_utility.common
import secure_backup_utility.config
import secure_backup_utility.exceptions
import secure_backup_utility.types

# Errors pgpy raises from packet parsing on malformed input
_PARSE_ERRORS = (
    ValueError,
    TypeError,
    KeyError,
    IndexError,
    AttributeError,
    NotImplementedError,
    pgpy.errors.PGPError,
)


# One armored key block, several of them can be concatenated in a key file
_ARMOR_BLOCK = re.compile(
    r"^-----BEGIN PGP (?P<kind>[A-Z ]+)-----\r?$.*?^-----END PGP (?P=kind)-----\r?$",
    flags=re.MULTILINE | re.DOTALL,
)


def fingerprint_of(key: pgpy.PGPKey) -> str:
    """Return the primary key fingerprint without whitespace."""
    return secure_backup_utility.config.normalize_fingerprint(str(key.fingerprint))


def read_key_file(path: pathlib.Path) -> str:
    """Read armored key material from a file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise secure_backup_utility.exceptions.KeyFormatError(
            f"Could not read key material from {path}: {e}"
        ) from e


def _armor_blocks(blob: str) -> list[str]:
    """Split concatenated armored blocks, unarmored input is passed on as is."""
    blocks = [m.group(0) for m in _ARMOR_BLOCK.finditer(blob)]
    return blocks if blocks else [blob]


def parse_key_blob(blob: str, kind: str = "") -> list[pgpy.PGPKey]:
    """Parse all primary keys in the armored blocks of a blob, in listed order."""
    keys: list[pgpy.PGPKey] = []
    seen: set[str] = set()
    try:
        for block in _armor_blocks(blob):
            key, others = pgpy.PGPKey.from_blob(block)
            # Additional keys in the same block are returned separately, subkeys
            # of the listed keys are not interesting here
            for candidate in [key, *others.values()]:
                if not candidate.is_primary or fingerprint_of(candidate) in seen:
                    continue
                seen.add(fingerprint_of(candidate))
                keys.append(candidate)
    except _PARSE_ERRORS as e:
        raise secure_backup_utility.exceptions.KeyFormatError(
            f"Could not parse {kind + ' ' if kind else ''}key material: {e}"
        ) from e

    return keys


def select_signer(
    candidates: list[pgpy.PGPKey], fingerprint: str = ""
) -> pgpy.PGPKey:
    """Choose the signing identity from the server private key material.

    With a fingerprint the matching private key is used. Without one the
    key material must contain exactly one private key.
    """
    private = [key for key in candidates if not key.is_public]
    if not private:
        raise secure_backup_utility.exceptions.NoSigner(
            "The server key material contains no private keys."
        )

    if fingerprint:
        for key in private:
            if fingerprint_of(key) == fingerprint:
                return key
        raise secure_backup_utility.exceptions.NoSigner(
            f"No private key with fingerprint {fingerprint} was found."
        )

    if len(private) > 1:
        raise secure_backup_utility.exceptions.AmbiguousSigner(
            "Several private keys could be used for signing: "
            + ", ".join(fingerprint_of(key) for key in private)
        )

    return private[0]


@contextlib.contextmanager
def unlocked(
    key: pgpy.PGPKey, passphrase: str
) -> typing.Generator[pgpy.PGPKey, None, None]:
    """Keep the secret key material usable for the duration of the block."""
    if not key.is_protected:
        yield key
        return

    with contextlib.ExitStack() as stack:
        try:
            stack.enter_context(key.unlock(passphrase))
        except pgpy.errors.PGPDecryptionError as e:
            raise secure_backup_utility.exceptions.WrongPassphrase(
                f"The passphrase did not unlock key {fingerprint_of(key)}."
            ) from e
        except (pgpy.errors.PGPError, NotImplementedError) as e:
            raise secure_backup_utility.exceptions.NoSigner(
                f"The private key {fingerprint_of(key)} can't be unlocked: {e}"
            ) from e
        yield key


def unlock_signer(signer: pgpy.PGPKey, passphrase: str) -> None:
    """Check that the signer's private key material can be unlocked."""
    with unlocked(signer, passphrase) as key:
        if not key.is_unlocked:
            raise secure_backup_utility.exceptions.NoSigner(
                f"The private key {fingerprint_of(key)} is not usable."
            )


def load_keyring(
    config: secure_backup_utility.types.BackupConfig,
) -> secure_backup_utility.types.KeyRing:
    """Load the recipients and the unlocked signer for a backup run."""
    secure_backup_utility.common.conditional_echo_debug(
        config, f"Reading trusted public keys from {config.public_key_path}"
    )
    public_keys = parse_key_blob(
        read_key_file(config.public_key_path), "trusted public"
    )
    # Only the public half of a key is needed for encrypting
    recipients = [key if key.is_public else key.pubkey for key in public_keys]
    for recipient in recipients:
        secure_backup_utility.common.conditional_echo_verbose(
            config, f"Encrypting for key {fingerprint_of(recipient)}"
        )

    secure_backup_utility.common.conditional_echo_debug(
        config, f"Reading server private keys from {config.private_key_path}"
    )
    candidates = parse_key_blob(
        read_key_file(config.private_key_path), "server private"
    )
    signer = select_signer(candidates, config.signer_fingerprint)
    unlock_signer(signer, config.signing_password)
    secure_backup_utility.common.conditional_echo_verbose(
        config, f"Signing with key {fingerprint_of(signer)}"
    )

    return {
        "recipients": recipients,
        "signer": signer,
        "passphrase": config.signing_password,
    }


def describe_keys(blob: str) -> list[secure_backup_utility.types.KeyDescription]:
    """Describe the keys in an armored blob."""
    return [
        {
            "fingerprint": fingerprint_of(key),
            "private": not key.is_public,
            "protected": key.is_protected,
            "userids": [format(uid) for uid in key.userids],
        }
        for key in parse_key_blob(blob)
    ]
