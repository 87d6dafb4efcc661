"""Tests for the site-not-found diagnostics page"""

import shutil
import tempfile
import unittest
from pathlib import Path

from valet_cli.certificates import is_secured, load_certificates, site_url
from valet_cli.config import ValetConfig
from valet_cli.router.not_found import build_not_found_view, render_not_found


class NotFoundTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.projects = self.temp_dir / "projects"
        self.certs = self.temp_dir / "Certificates"
        for name in ("blog", "shop"):
            (self.projects / name).mkdir(parents=True)
        self.certs.mkdir()
        (self.certs / "blog.dev.crt").write_text("cert")
        (self.certs / "blog.dev.key").write_text("key")
        self.config = ValetConfig.from_dict(
            {
                "domain": "dev",
                "paths": [str(self.projects), str(self.temp_dir / "gone")],
                "rewrites": {"blog": ["news"]},
                "php_version": "8.2",
            }
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class CertificateTests(NotFoundTestCase):
    def test_load_certificates(self):
        certificates = load_certificates(self.certs)
        self.assertEqual(list(certificates), ["blog.dev"])

    def test_missing_store(self):
        self.assertEqual(load_certificates(self.temp_dir / "nope"), {})

    def test_is_secured(self):
        certificates = load_certificates(self.certs)
        self.assertTrue(is_secured("blog", "dev", certificates))
        self.assertFalse(is_secured("shop", "dev", certificates))

    def test_bare_name_certificate(self):
        (self.certs / "shop.crt").write_text("cert")
        self.assertTrue(is_secured("shop", "dev", load_certificates(self.certs)))

    def test_site_url(self):
        certificates = load_certificates(self.certs)
        self.assertEqual(site_url("blog", "dev", certificates), "https://blog.dev")
        self.assertEqual(site_url("shop", "dev", certificates), "http://shop.dev")


class BuildViewTests(NotFoundTestCase):
    def test_view(self):
        view = build_not_found_view("missing", self.config, self.certs)
        self.assertEqual(view.requested_site, "missing.dev")
        self.assertEqual(view.requested_site_name, "missing")
        self.assertEqual(view.site_count, 2)
        self.assertEqual(view.path_count, 2)

    def test_site_links(self):
        view = build_not_found_view("missing", self.config, self.certs)
        links = view.sites[str(self.projects)]
        self.assertEqual([(link.name, link.url, link.secure) for link in links], [("blog", "https://blog.dev", True), ("shop", "http://shop.dev", False)])
        self.assertEqual(view.sites[str(self.temp_dir / "gone")], [])

    def test_custom_config_hides_displayed_keys(self):
        view = build_not_found_view("missing", self.config, self.certs)
        self.assertEqual(view.custom_config, {"php_version": "8.2"})
        self.assertEqual(view.config["domain"], "dev")

    def test_site_count_passed_through(self):
        view = build_not_found_view("missing", self.config, self.certs, site_count=7)
        self.assertEqual(view.site_count, 7)


class RenderTests(NotFoundTestCase):
    def test_render(self):
        html = render_not_found(build_not_found_view("missing", self.config, self.certs))
        self.assertIn("missing.dev", html)
        self.assertIn('href="https://blog.dev"', html)
        self.assertIn('href="http://shop.dev"', html)
        self.assertIn("news", html)
        self.assertIn("php_version", html)

    def test_values_are_escaped(self):
        html = render_not_found(build_not_found_view("<script>alert(1)</script>", self.config, self.certs))
        self.assertNotIn("<script>alert(1)</script>", html)
        self.assertIn("&lt;script&gt;", html)


if __name__ == "__main__":
    unittest.main()
