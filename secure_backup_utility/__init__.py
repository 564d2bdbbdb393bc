"""CLI utility for backing up a folder as a signed and encrypted archive.

The folder is packed into a ZIP archive, signed and encrypted with OpenPGP
keys, and uploaded to S3 object storage as a single object.
"""

__name__ = "secure_backup_utility"
__version__ = "0.0.1"
__author__ = "Secure Backup Developers"
__license__ = "MIT License"
