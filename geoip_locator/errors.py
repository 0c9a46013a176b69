class AppError(Exception):
    """Base application error for the GeoIP locator."""


class ConfigurationError(AppError):
    """Raised when the GeoIP service is not configured or is misconfigured."""


class UnknownProviderError(ConfigurationError):
    """Raised when a provider name does not match any registered provider."""


class IpProviderError(AppError):
    """Base error for IP geolocation provider failures."""


class InvalidIpError(IpProviderError):
    """Raised when the provider rejects the IP address as syntactically invalid."""


class ReservedIpError(IpProviderError):
    """Raised when the provider rejects the IP address as reserved/private (e.g. 127.0.0.1, 192.168.x.x)."""


class ProviderNotFoundError(IpProviderError):
    """Raised when the provider has no geolocation record for the IP."""


class ProviderTransportError(IpProviderError):
    """Raised when the provider fails (network, decoding, unexpected response)."""
