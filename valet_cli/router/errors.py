"""Request-level dispatch failures. Each one ends the current request with a 404."""


class ValetError(Exception):
    """Base class for dispatch failures."""

    message = "Not found."
    status_code = 404

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class NoSiteMatch(ValetError):
    """No project directory exists for the requested site."""

    message = "No site found for the requested host."

    def __init__(self, site_name: str, site_count: int = 0) -> None:
        super().__init__(f"No site found for {site_name!r}.")
        self.site_name = site_name
        self.site_count = site_count


class NoDriverMatch(ValetError):
    """The site directory exists but no driver recognises the project."""

    message = "Could not find suitable driver for your project."


class NoFrontController(ValetError):
    """The driver could not name an entry file for the URI."""

    message = "Did not get front controller from driver. Please return a front controller to be executed."
