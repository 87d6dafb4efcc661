"""Tests for the valet-router command line"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from valet_cli.main import build_parser, main


class CommandTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.home = Path(self._tmp.name).resolve()
        self.projects = self.home / "Sites"
        (self.projects / "app" / "public").mkdir(parents=True)
        (self.projects / "app" / "public" / "index.php").write_text("<?php")
        (self.projects / "app" / "artisan").write_text("")
        (self.projects / "plain").mkdir()
        (self.home / "Certificates").mkdir()
        (self.home / "Certificates" / "app.test.crt").write_text("cert")
        env = patch.dict(os.environ, {"VALET_HOME": str(self.home)})
        env.start()
        self.addCleanup(env.stop)
        self.addCleanup(self._tmp.cleanup)

    def write_config(self, data):
        (self.home / "config.json").write_text(json.dumps(data))


class ParserTests(unittest.TestCase):
    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        self.assertEqual(args.host, "127.0.0.1")
        self.assertEqual(args.port, 80)
        self.assertIsNone(args.log_level)

    def test_no_command(self):
        with patch("sys.stdout"):
            self.assertEqual(main([]), 1)


class CheckCommandTests(CommandTestCase):
    def test_valid_config(self):
        self.write_config({"domain": "test", "paths": [str(self.projects)]})
        self.assertEqual(main(["check"]), 0)

    def test_missing_config(self):
        self.assertEqual(main(["check"]), 1)

    def test_invalid_config(self):
        self.write_config({"domain": "", "paths": "nope"})
        self.assertEqual(main(["check"]), 1)

    def test_unknown_driver(self):
        self.write_config({"domain": "test", "paths": [str(self.projects)], "drivers": ["nowhere:Driver"]})
        self.assertEqual(main(["check"]), 1)

    def test_missing_path_is_a_warning(self):
        self.write_config({"domain": "test", "paths": [str(self.projects), str(self.home / "gone")]})
        self.assertEqual(main(["check"]), 0)


class SitesCommandTests(CommandTestCase):
    def test_lists_sites(self):
        self.write_config({"domain": "test", "paths": [str(self.projects)]})
        with patch("valet_cli.main.print_sites") as print_sites:
            self.assertEqual(main(["sites"]), 0)

        rows = print_sites.call_args.args[0]
        self.assertEqual(
            rows,
            [
                ("app", "https://app.test", "laravel", True, str(self.projects / "app")),
                ("plain", "http://plain.test", "basic", False, str(self.projects / "plain")),
            ],
        )

    def test_bad_config(self):
        self.write_config({"domain": 42})
        self.assertEqual(main(["sites"]), 1)


class ServeCommandTests(CommandTestCase):
    @patch("uvicorn.run")
    @patch("valet_cli.main.setup_logging")
    def test_runs_app_factory(self, setup_logging, run):
        self.assertEqual(main(["serve", "--port", "8080", "--log-level", "DEBUG"]), 0)
        setup_logging.assert_called_once_with(level="DEBUG")
        args, kwargs = run.call_args
        self.assertEqual(args[0], "valet_cli.router.core:create_app")
        self.assertTrue(kwargs["factory"])
        self.assertEqual(kwargs["port"], 8080)
        self.assertEqual(kwargs["log_level"], "debug")


if __name__ == "__main__":
    unittest.main()
