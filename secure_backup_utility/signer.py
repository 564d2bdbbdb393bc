"""Archive signing and encryption."""

import pgpy
from pgpy.constants import SymmetricKeyAlgorithm

import secure_backup_utility.exceptions
import secure_backup_utility.keyring
import secure_backup_utility.types

# Used when the recipients don't share a preferred cipher
FALLBACK_CIPHER = SymmetricKeyAlgorithm.AES128


def _cipher_preferences(key: pgpy.PGPKey) -> list[SymmetricKeyAlgorithm]:
    """Return the symmetric cipher preferences from the key's self-signatures."""
    for uid in key.userids:
        if uid.selfsig is not None and uid.selfsig.cipherprefs:
            return list(uid.selfsig.cipherprefs)
    return []


def _is_usable(cipher: SymmetricKeyAlgorithm) -> bool:
    try:
        return cipher.is_supported and not cipher.is_insecure
    except NotImplementedError:
        return False


def negotiate_cipher(recipients: list[pgpy.PGPKey]) -> SymmetricKeyAlgorithm:
    """Pick the session cipher every recipient has declared it accepts."""
    preferences = [_cipher_preferences(key) for key in recipients]
    for cipher in preferences[0]:
        if not _is_usable(cipher):
            continue
        if all(cipher in other for other in preferences[1:]):
            return cipher
    return FALLBACK_CIPHER


def encrypt_and_sign(
    archive: bytes, keyring: secure_backup_utility.types.KeyRing
) -> bytes:
    """Sign the archive, then encrypt the signed message for every recipient.

    A single session key is used, with one encrypted copy of it per
    recipient, so that any recipient can decrypt the message. The result is
    only returned once the whole message has been serialized.
    """
    recipients = keyring["recipients"]
    signer = keyring["signer"]

    if not recipients:
        raise secure_backup_utility.exceptions.NoRecipients(
            "No recipients were provided for encryption."
        )

    if signer.is_public:
        raise secure_backup_utility.exceptions.NoSigner(
            "The signing key has no private key material."
        )

    try:
        message = pgpy.PGPMessage.new(archive, format="b")
        with secure_backup_utility.keyring.unlocked(signer, keyring["passphrase"]):
            message |= signer.sign(message)

        cipher = negotiate_cipher(recipients)
        session_key = cipher.gen_key()
        for recipient in recipients:
            message = recipient.encrypt(message, cipher=cipher, sessionkey=session_key)
        del session_key

        return bytes(message)
    except secure_backup_utility.exceptions.SignerAuthenticationError:
        raise
    except Exception as e:
        raise secure_backup_utility.exceptions.EncryptionFailed(
            f"Could not sign and encrypt the archive: {e}"
        ) from e
