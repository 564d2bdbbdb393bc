"""Test functions in the config module."""

import os
import pathlib
import tempfile
import unittest
import unittest.mock

import secure_backup_utility.config
import secure_backup_utility.exceptions


class TestConfig(unittest.TestCase):
    """Class for testing run configuration validation."""

    def setUp(self):
        """Set up files referenced by the configuration."""
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        root = pathlib.Path(tmp.name)
        (root / "folder").mkdir()
        (root / "trusted.asc").write_text("test-public")
        (root / "server.asc").write_text("test-private")

        self.params = {
            "folder": str(root / "folder"),
            "public_key": str(root / "trusted.asc"),
            "private_key": str(root / "server.asc"),
            "signing_password": "test-password",
            "bucket": "test-bucket",
            "object_key": "test-key",
            "region": "test-region",
            "access_key": "test-access-key",
            "secret_key": "test-secret-key",
        }
        self.root = root

        self.patch_env = unittest.mock.patch.dict(os.environ, {}, clear=True)
        self.patch_env.start()
        self.addCleanup(self.patch_env.stop)

    def test_load_config_success(self):
        """Test building the configuration from valid options."""
        config = secure_backup_utility.config.load_config(
            **self.params,
            signer_fingerprint="abcd " * 10,
            progress=True,
            verbose=True,
        )

        self.assertEqual(config.folder, self.root / "folder")
        self.assertEqual(config.public_key_path, self.root / "trusted.asc")
        self.assertEqual(config.private_key_path, self.root / "server.asc")
        self.assertEqual(config.signing_password, "test-password")
        self.assertEqual(config.bucket, "test-bucket")
        self.assertEqual(config.object_key, "test-key")
        self.assertEqual(config.region, "test-region")
        self.assertEqual(config.access_key, "test-access-key")
        self.assertEqual(config.secret_key, "test-secret-key")
        self.assertEqual(config.signer_fingerprint, "ABCD" * 10)
        self.assertTrue(config.progress)
        self.assertTrue(config.verbose)
        self.assertFalse(config.debug)

    def test_load_config_missing_values(self):
        """Test that every missing option is reported with its own error."""
        expected = {
            "folder": secure_backup_utility.exceptions.NoFolder,
            "public_key": secure_backup_utility.exceptions.NoPublicKey,
            "private_key": secure_backup_utility.exceptions.NoPrivateKey,
            "signing_password": secure_backup_utility.exceptions.NoPassphrase,
            "region": secure_backup_utility.exceptions.NoRegion,
            "bucket": secure_backup_utility.exceptions.NoBucket,
            "object_key": secure_backup_utility.exceptions.NoObjectKey,
            "access_key": secure_backup_utility.exceptions.NoAccessKey,
            "secret_key": secure_backup_utility.exceptions.NoSecretKey,
        }
        for name, exception in expected.items():
            params = dict(self.params)
            params[name] = ""
            with self.subTest(option=name), self.assertRaises(exception):
                secure_backup_utility.config.load_config(**params)

    def test_load_config_validation_errors(self):
        """Test that all validation errors share a common base class."""
        with self.assertRaises(secure_backup_utility.exceptions.ValidationError):
            secure_backup_utility.config.load_config()

    def test_load_config_folder_not_directory(self):
        """Test that the folder must be a directory."""
        self.params["folder"] = self.params["public_key"]

        with self.assertRaises(secure_backup_utility.exceptions.NoFolder):
            secure_backup_utility.config.load_config(**self.params)

    def test_load_config_missing_key_files(self):
        """Test that key files must exist."""
        for name, exception in (
            ("public_key", secure_backup_utility.exceptions.NoPublicKey),
            ("private_key", secure_backup_utility.exceptions.NoPrivateKey),
        ):
            params = dict(self.params)
            params[name] = str(self.root / "missing.asc")
            with self.subTest(option=name), self.assertRaises(exception):
                secure_backup_utility.config.load_config(**params)

    def test_load_config_password_from_environment(self):
        """Test reading the signing password from the environment."""
        self.params["signing_password"] = ""
        os.environ["SECURE_BACKUP_SIGNING_PASSWORD"] = "env-password"

        config = secure_backup_utility.config.load_config(**self.params)

        self.assertEqual(config.signing_password, "env-password")

    def test_load_config_aws_keys_not_from_environment(self):
        """Test that AWS credentials are not taken from the environment."""
        self.params["access_key"] = ""
        os.environ["AWS_ACCESS_KEY_ID"] = "env-access-key"

        with self.assertRaises(secure_backup_utility.exceptions.NoAccessKey):
            secure_backup_utility.config.load_config(**self.params)

    def test_load_config_invalid_fingerprint(self):
        """Test that the signer fingerprint must be hexadecimal."""
        for fingerprint in ("xyz", "A" * 39, "G" * 40):
            with self.subTest(fingerprint=fingerprint), self.assertRaises(
                secure_backup_utility.exceptions.InvalidFingerprint
            ):
                secure_backup_utility.config.load_config(
                    **self.params, signer_fingerprint=fingerprint
                )

    def test_load_config_fingerprint_from_environment(self):
        """Test reading the signer fingerprint from the environment."""
        os.environ["SECURE_BACKUP_SIGNER_FINGERPRINT"] = "b" * 64

        config = secure_backup_utility.config.load_config(**self.params)

        self.assertEqual(config.signer_fingerprint, "B" * 64)

    def test_load_config_debug_disables_progress(self):
        """Test that progress is not displayed in debug mode."""
        config = secure_backup_utility.config.load_config(
            **self.params, progress=True, debug=True
        )

        self.assertFalse(config.progress)

    def test_config_repr_hides_secrets(self):
        """Test that the configuration can be echoed without leaking secrets."""
        config = secure_backup_utility.config.load_config(**self.params)

        self.assertNotIn("test-password", repr(config))
        self.assertNotIn("test-secret-key", repr(config))
        self.assertIn("test-access-key", repr(config))

    def test_config_is_immutable(self):
        """Test that the configuration can't be modified after validation."""
        config = secure_backup_utility.config.load_config(**self.params)

        with self.assertRaises(AttributeError):
            config.bucket = "other-bucket"  # type: ignore
