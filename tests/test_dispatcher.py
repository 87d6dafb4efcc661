"""Tests for the dispatch pipeline"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from valet_cli.config import ValetConfig
from valet_cli.drivers import DriverRegistry, LaravelValetDriver, WordPressValetDriver
from valet_cli.router.cache import MemoryStore, SitePathCache
from valet_cli.router.dispatcher import Dispatcher, HandOff, RequestContext, StaticFile, remap_tunnel_host
from valet_cli.router.errors import NoDriverMatch, NoFrontController, NoSiteMatch


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class DispatcherTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.projects = self.temp_dir / "projects"
        self.make("blog/index.php", "blog/css/app.css", "shop/index.html", "empty/.keep")
        self.clock = FakeClock()
        self.cache = SitePathCache(store=MemoryStore(clock=self.clock), ttl=3600)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make(self, *files: str, base: Path | None = None):
        for name in files:
            path = (base or self.projects) / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(name)

    def dispatcher(self, registry: DriverRegistry | None = None, **config) -> Dispatcher:
        data = {"domain": "dev", "paths": [str(self.projects)], **config}
        return Dispatcher(ValetConfig.from_dict(data), self.cache, registry or DriverRegistry())

    def dispatch(self, host: str, uri: str = "/", **kwargs):
        return self.dispatcher(**kwargs).dispatch(RequestContext(host=host, raw_uri=uri))


class HandOffTests(DispatcherTestCase):
    def test_front_controller_hand_off(self):
        context = RequestContext(host="blog.dev", raw_uri="/index.php")
        result = self.dispatcher().dispatch(context)

        self.assertIsInstance(result, HandOff)
        self.assertEqual(result.front_controller, self.projects / "blog" / "index.php")
        self.assertEqual(result.working_directory, self.projects / "blog")
        self.assertEqual(result.site_path, self.projects / "blog")
        self.assertEqual(result.uri, "/index.php")
        self.assertIs(result.context, context)
        self.assertEqual(context.site_name, "blog")
        self.assertEqual(context.mutated_uri, "/index.php")

    def test_pretty_url_goes_to_front_controller(self):
        result = self.dispatch("blog.dev", "/posts/1?page=2")
        self.assertEqual(result.front_controller, self.projects / "blog" / "index.php")

    def test_root_uri_never_static(self):
        result = self.dispatch("shop.dev", "/")
        self.assertIsInstance(result, HandOff)
        self.assertEqual(result.front_controller, self.projects / "shop" / "index.html")

    def test_script_extension_skips_static_lookup(self):
        with patch("valet_cli.drivers.basic.BasicValetDriver.is_static_file") as is_static:
            self.dispatch("blog.dev", "/index.php")
        is_static.assert_not_called()

    def test_mutated_uri_used_for_lookup(self):
        self.make("wp/wp-config.php", "wp/index.php", "wp/wp-admin/index.php")
        context = RequestContext(host="wp.dev", raw_uri="/wp-admin")
        result = self.dispatcher().dispatch(context)
        self.assertIsInstance(result.driver, WordPressValetDriver)
        self.assertEqual(context.mutated_uri, "/wp-admin/")
        self.assertEqual(result.front_controller, self.projects / "wp" / "wp-admin" / "index.php")


class StaticTests(DispatcherTestCase):
    def test_static_file(self):
        result = self.dispatch("blog.dev", "/css/app.css")
        self.assertIsInstance(result, StaticFile)
        self.assertEqual(result.path, self.projects / "blog" / "css" / "app.css")
        self.assertEqual(Path(result.response.path), result.path)

    def test_overlong_uri_falls_through_to_front_controller(self):
        result = self.dispatch("blog.dev", "/" + "a" * 300)
        self.assertIsInstance(result, HandOff)
        self.assertEqual(result.front_controller, self.projects / "blog" / "index.php")

    def test_encoded_static_path(self):
        self.make("blog/my file.txt")
        result = self.dispatch("blog.dev", "/my%20file.txt")
        self.assertIsInstance(result, StaticFile)


class ResolutionTests(DispatcherTestCase):
    def test_www_alias(self):
        plain = self.dispatch("blog.dev", "/index.php")
        www = self.dispatch("www.blog.dev", "/index.php")
        self.assertEqual(plain.front_controller, www.front_controller)

    def test_rewrite_alias(self):
        rewrites = {"blog": ["news", "journal"]}
        canonical = self.dispatch("blog.dev", rewrites=rewrites)
        alias = self.dispatch("journal.dev", rewrites=rewrites)
        self.assertEqual(canonical.site_path, alias.site_path)
        self.assertEqual(alias.context.site_name, "blog")

    def test_path_priority(self):
        second = self.temp_dir / "second"
        self.make("blog/index.php", base=second)
        dispatcher = Dispatcher(
            ValetConfig.from_dict({"domain": "dev", "paths": [str(second), str(self.projects)]}),
            self.cache,
            DriverRegistry(),
        )
        result = dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
        self.assertEqual(result.site_path, second / "blog")

    def test_subdomain_falls_back_to_last_label(self):
        result = self.dispatch("api.blog.dev", "/")
        self.assertEqual(result.site_path, self.projects / "blog")

    def test_no_site_match(self):
        with self.assertRaises(NoSiteMatch) as ctx:
            self.dispatch("missing.dev", "/")
        self.assertEqual(ctx.exception.site_name, "missing")
        self.assertEqual(ctx.exception.site_count, 3)

    def test_overlong_site_name(self):
        with self.assertRaises(NoSiteMatch) as ctx:
            self.dispatch("a" * 300 + ".dev", "/")
        self.assertEqual(ctx.exception.site_count, 3)

    def test_empty_site_name(self):
        with self.assertRaises(NoSiteMatch):
            self.dispatch("", "/")

    def test_failed_resolution_not_cached(self):
        with self.assertRaises(NoSiteMatch):
            self.dispatch("later.dev", "/")
        self.make("later/index.php")
        result = self.dispatch("later.dev", "/")
        self.assertEqual(result.site_path, self.projects / "later")


class CacheTests(DispatcherTestCase):
    def test_cache_honoured_within_ttl(self):
        dispatcher = self.dispatcher()
        with patch.object(dispatcher.resolver, "resolve", wraps=dispatcher.resolver.resolve) as resolve:
            dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
            self.clock.now += 3599
            dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
            self.assertEqual(resolve.call_count, 1)

            self.clock.now += 1
            dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
            self.assertEqual(resolve.call_count, 2)

    def test_cached_path_survives_moves_until_expiry(self):
        self.dispatch("blog.dev", "/")
        moved = self.temp_dir / "elsewhere"
        self.make("blog/index.php", base=moved)
        config = {"domain": "dev", "paths": [str(moved)]}
        dispatcher = Dispatcher(ValetConfig.from_dict(config), self.cache, DriverRegistry())

        stale = dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
        self.assertEqual(stale.site_path, self.projects / "blog")

        self.clock.now += 3600
        fresh = dispatcher.dispatch(RequestContext(host="blog.dev", raw_uri="/"))
        self.assertEqual(fresh.site_path, moved / "blog")

    def test_cache_keyed_by_canonical_name(self):
        self.dispatch("news.dev", rewrites={"blog": ["news"]})
        self.assertEqual(self.cache.get("blog"), str(self.projects / "blog"))
        self.assertIsNone(self.cache.get("news"))


class FailureTests(DispatcherTestCase):
    def test_no_driver_match_is_not_no_site_match(self):
        registry = DriverRegistry([LaravelValetDriver()])
        with self.assertRaises(NoDriverMatch) as ctx:
            self.dispatch("blog.dev", "/", registry=registry)
        self.assertNotIsInstance(ctx.exception, NoSiteMatch)
        self.assertIn("suitable driver", str(ctx.exception))

    def test_no_front_controller(self):
        with self.assertRaises(NoFrontController) as ctx:
            self.dispatch("empty.dev", "/")
        self.assertIn("front controller", str(ctx.exception))


class TunnelHeaderTests(unittest.TestCase):
    def test_original_host_copied(self):
        headers = {"x-original-host": "abc.ngrok.io"}
        remap_tunnel_host(headers)
        self.assertEqual(headers["x-forwarded-host"], "abc.ngrok.io")

    def test_existing_forwarded_host_kept(self):
        headers = {"x-original-host": "abc.ngrok.io", "x-forwarded-host": "blog.dev"}
        remap_tunnel_host(headers)
        self.assertEqual(headers["x-forwarded-host"], "blog.dev")

    def test_no_headers(self):
        headers = {}
        remap_tunnel_host(headers)
        self.assertEqual(headers, {})

    def test_remapped_during_dispatch(self):
        context = RequestContext(host="blog.dev", raw_uri="/", headers={"X-Original-Host": "abc.ngrok.io"})
        temp_dir = Path(tempfile.mkdtemp()).resolve()
        try:
            (temp_dir / "blog").mkdir()
            (temp_dir / "blog" / "index.php").write_text("<?php")
            config = ValetConfig.from_dict({"domain": "dev", "paths": [str(temp_dir)]})
            Dispatcher(config, SitePathCache(), DriverRegistry()).dispatch(context)
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
        self.assertEqual(context.headers["x-forwarded-host"], "abc.ngrok.io")


if __name__ == "__main__":
    unittest.main()
