"""Errors raised by quote providers.

The refresh pipeline turns every one of these into a per-ticker
``QuoteError`` marker, so a single bad symbol never fails a batch.
"""


class ProviderError(Exception):
    """Base class; records which provider failed."""

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderConnectionError(ProviderError):
    """The request to the provider did not complete (network, HTTP, parse).

    Retriable by default; the next scheduled refresh tries again.
    """

    def __init__(self, message: str, provider_name: str = "", retriable: bool = True):
        self.retriable = retriable
        super().__init__(message, provider_name)


class QuoteUnavailableError(ProviderError):
    """The provider answered but had no usable price for ``ticker``."""

    def __init__(self, ticker: str, message: str = "", provider_name: str = ""):
        self.ticker = ticker
        super().__init__(message or f"No quote available for {ticker}", provider_name)
