"""Error types raised by providers and the analyzer."""


class CarriageVisionError(Exception):
    """Base class for all carriage-vision errors."""


class ConfigurationError(CarriageVisionError):
    """A provider was used without the credentials it needs."""


class NoProvidersAvailableError(ConfigurationError):
    """No registered provider is both configured and enabled.

    Raised while building the provider chain. The application cannot
    serve analysis requests when this happens.
    """


class TransportError(CarriageVisionError):
    """The remote backend call failed (network, auth, non-success status)."""


class ParseError(CarriageVisionError):
    """The backend replied but no usable JSON object was found in the reply."""


class ProviderAnalysisError(CarriageVisionError):
    """A single provider attempt failed.

    Wraps the underlying transport, parse or input error together with the
    name of the provider that produced it.
    """

    def __init__(self, provider: str, cause: BaseException) -> None:
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider} analysis failed: {cause}")
