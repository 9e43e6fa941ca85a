import unittest

from lockscan.config import ModuleScope, ScanConfig
from lockscan.exceptions import ConfigurationError
from lockscan.models import LockfileFormat


class TestScanConfig(unittest.TestCase):
    """Test cases for the ScanConfig dataclass and related functionality."""

    def test_defaults(self):
        config = ScanConfig()

        config.validate()
        self.assertEqual(config.module_scope, ModuleScope.MODULE)
        self.assertEqual(config.max_workers, 4)
        self.assertIsNone(config.enabled_formats)

    def test_validation_invalid_workers(self):
        """Test that ScanConfig raises ConfigurationError for a non-positive worker count."""
        for workers in (0, -1, True, "4"):
            with self.subTest(workers=workers):
                with self.assertRaises(ConfigurationError) as cm:
                    ScanConfig(max_workers=workers).validate()
                self.assertIn("max_workers", str(cm.exception))

    def test_validation_invalid_scope(self):
        with self.assertRaises(ConfigurationError):
            ScanConfig(module_scope="module").validate()

    def test_validation_empty_enabled_formats(self):
        with self.assertRaises(ConfigurationError) as cm:
            ScanConfig(enabled_formats=frozenset()).validate()

        self.assertIn("cannot be empty", str(cm.exception))

    def test_validation_unknown_format(self):
        with self.assertRaises(ConfigurationError):
            ScanConfig(enabled_formats=frozenset({"gradle.lockfile"})).validate()

    def test_is_enabled(self):
        self.assertTrue(ScanConfig().is_enabled(LockfileFormat.CARGO_LOCK))

        config = ScanConfig(enabled_formats=frozenset({LockfileFormat.GRADLE_LOCKFILE}))
        self.assertTrue(config.is_enabled(LockfileFormat.GRADLE_LOCKFILE))
        self.assertFalse(config.is_enabled(LockfileFormat.CARGO_LOCK))

    def test_config_is_immutable(self):
        config = ScanConfig()

        with self.assertRaises(AttributeError):
            config.max_workers = 8


class TestScanConfigFromDict(unittest.TestCase):
    """Test cases for building a ScanConfig from plain values."""

    def test_from_dict(self):
        config = ScanConfig.from_dict(
            {"module_scope": "project", "max_workers": 8, "enabled_formats": ["gradle.lockfile", "Cargo.lock"]}
        )

        self.assertEqual(config.module_scope, ModuleScope.PROJECT)
        self.assertEqual(config.max_workers, 8)
        self.assertEqual(
            config.enabled_formats, frozenset({LockfileFormat.GRADLE_LOCKFILE, LockfileFormat.CARGO_LOCK})
        )

    def test_from_empty_dict(self):
        self.assertEqual(ScanConfig.from_dict({}), ScanConfig())

    def test_invalid_module_scope(self):
        with self.assertRaises(ConfigurationError) as cm:
            ScanConfig.from_dict({"module_scope": "workspace"})

        self.assertIn("module, project", str(cm.exception))

    def test_invalid_format(self):
        with self.assertRaises(ConfigurationError):
            ScanConfig.from_dict({"enabled_formats": ["setup.py"]})

    def test_unknown_keys(self):
        with self.assertRaises(ConfigurationError) as cm:
            ScanConfig.from_dict({"max_workers": 2, "follow_includes": True})

        self.assertIn("follow_includes", str(cm.exception))

    def test_invalid_worker_count(self):
        with self.assertRaises(ConfigurationError):
            ScanConfig.from_dict({"max_workers": 0})


if __name__ == "__main__":
    unittest.main()
