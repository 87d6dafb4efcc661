from pathlib import Path

from .basic import BasicValetDriver


class WordPressValetDriver(BasicValetDriver):
    name = "wordpress"

    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        return (site_path / "wp-config.php").is_file() or (site_path / "wp-config-sample.php").is_file()

    def mutate_uri(self, uri: str) -> str:
        # wp-admin/index.php builds relative links
        if uri == "/wp-admin":
            return "/wp-admin/"
        return uri
