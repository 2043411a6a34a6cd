"""Exception hierarchy for freeze-dry."""


class FreezeDryError(Exception):
    """Base class for all freeze-dry errors."""


class ConfigurationError(FreezeDryError, ValueError):
    """Raised before the pipeline starts when its inputs are unusable.

    Examples: no document was given, the environment lacks the interfaces the
    pipeline needs, or an option failed validation.
    """


class FetchError(FreezeDryError, RuntimeError):
    """A subresource could not be fetched or interpreted.

    Never escapes the crawler: the affected link is simply left without a
    resource.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
