"""
Tests for the command line application.
"""
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from devcert.main import DevCertApplication, main
from devcert.security.errors import TrustStoreImportError
from devcert.security.trust_store import TrustStoreInstaller


class AcceptingInstaller(TrustStoreInstaller):
    def __init__(self):
        self.imported = []

    def remove(self, subject_substrings):
        pass

    def import_certificate(self, path):
        self.imported.append(Path(path))


class RejectingInstaller(AcceptingInstaller):
    def import_certificate(self, path):
        raise TrustStoreImportError(path, "Access is denied.", "output: Access is denied.")


class TestDevCertApplication(unittest.TestCase):
    """Test cases for DevCertApplication and main()."""

    def setUp(self):
        """Write a configuration pointing into a temporary directory."""
        self.temp_dir = tempfile.mkdtemp()
        self.cert_dir = os.path.join(self.temp_dir, "certificate")
        self.config_path = os.path.join(self.temp_dir, "devcert.properties")
        with open(self.config_path, 'w') as f:
            f.write(f"""
[certificate]
directory = {self.cert_dir}

[trust_store]
install = true

[server]
cert_path = {self.cert_dir}/localhost.crt
key_path = {self.cert_dir}/localhost.key

[app]
log_file_path = {self.temp_dir}/logs/devcert.log
""")
        self.root_handlers = logging.getLogger().handlers[:]
        self.root_level = logging.getLogger().level

    def tearDown(self):
        """Restore the root logger and clean up."""
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in self.root_handlers:
            root.addHandler(handler)
        root.setLevel(self.root_level)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_initialize_loads_config(self):
        app = DevCertApplication(config_path=self.config_path)

        self.assertTrue(app.initialize())
        self.assertEqual(app.config.cert_dir, self.cert_dir)

    def test_initialize_without_file_uses_defaults(self):
        app = DevCertApplication(config_path=os.path.join(self.temp_dir, "absent.properties"))

        with patch('devcert.main.LoggingService'):
            self.assertTrue(app.initialize())
        self.assertEqual(app.config.cert_dir, "certificate")

    def test_initialize_reports_invalid_config(self):
        with open(self.config_path, 'w') as f:
            f.write("[archive]\nmax_files = -1\n")

        self.assertFalse(DevCertApplication(config_path=self.config_path).initialize())

    def test_create_and_verify(self):
        """A successful run writes the pair, imports it and verifies it loads."""
        installer = AcceptingInstaller()
        app = DevCertApplication(config_path=self.config_path, installer=installer)
        app.initialize()

        result = app.create_certificate()

        self.assertTrue(result.success, result.error_message)
        self.assertEqual(installer.imported, [result.paths.trust_bundle])
        self.assertTrue(app.verify_current_pair(result))

    def test_create_logs_stage_timings(self):
        app = DevCertApplication(config_path=self.config_path, installer=AcceptingInstaller())
        app.initialize()

        with self.assertLogs('devcert.main', level='INFO') as logs:
            app.create_certificate()

        timings = [line for line in logs.output if "Stage " in line]
        self.assertEqual(len(timings), 4)
        self.assertTrue(any("Stage generate took" in line for line in timings))

    def test_verify_detects_mismatched_pair(self):
        app = DevCertApplication(config_path=self.config_path, installer=AcceptingInstaller())
        app.initialize()
        result = app.create_certificate()
        result.paths.current_key.write_bytes(b"garbage")

        self.assertFalse(app.verify_current_pair(result))

    def test_main_without_trust_store(self):
        """--no-trust-store runs the lifecycle and exits zero."""
        exit_code = main(["--config", self.config_path, "--no-trust-store"])

        self.assertEqual(exit_code, 0)
        self.assertTrue(os.path.exists(os.path.join(self.cert_dir, "localhost.crt")))
        self.assertTrue(os.path.exists(os.path.join(self.cert_dir, "localhost.key")))

    def test_main_exits_non_zero_on_trust_store_failure(self):
        """A fatal lifecycle error gives exit status 1 and leaves the files in place."""
        with patch('devcert.services.lifecycle_service.get_trust_store_installer',
                   return_value=RejectingInstaller()):
            exit_code = main(["--config", self.config_path])

        self.assertEqual(exit_code, 1)
        self.assertTrue(os.path.exists(os.path.join(self.cert_dir, "localhost.crt")))

    def test_main_check_config(self):
        with patch('builtins.print') as mock_print:
            exit_code = main(["--config", self.config_path, "--check-config"])

        self.assertEqual(exit_code, 0)
        mock_print.assert_any_call("Configuration check passed")
        self.assertFalse(os.path.exists(self.cert_dir))

    def test_main_init_config(self):
        path = os.path.join(self.temp_dir, "generated", "devcert.properties")

        with patch('builtins.print'):
            exit_code = main(["--init-config", path])

        self.assertEqual(exit_code, 0)
        self.assertTrue(os.path.exists(path))

    def test_main_serve(self):
        with patch('devcert.main.DevHTTPSServer') as mock_server:
            exit_code = main(["--config", self.config_path, "--serve"])

        self.assertEqual(exit_code, 0)
        mock_server.return_value.run.assert_called_once()

    def test_main_serve_bind_failure_exits_non_zero(self):
        """A port that cannot be bound ends with exit status 1, not a traceback."""
        with patch('devcert.main.DevHTTPSServer') as mock_server:
            mock_server.return_value.run.side_effect = PermissionError(13, "Permission denied")
            exit_code = main(["--config", self.config_path, "--serve"])

        self.assertEqual(exit_code, 1)

    def test_main_check_config_with_percent_value(self):
        """A % in a property value does not break configuration loading."""
        with open(self.config_path) as f:
            content = f.read()
        with open(self.config_path, 'w') as f:
            f.write(content.replace(
                "[certificate]\n", "[certificate]\norganization_names = 100% Dev Cert\n"
            ))

        with patch('builtins.print'):
            exit_code = main(["--config", self.config_path, "--check-config"])

        self.assertEqual(exit_code, 0)


if __name__ == '__main__':
    unittest.main()
