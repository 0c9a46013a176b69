from geoip_locator.providers.base import BaseLocationProvider
from geoip_locator.providers.ip_api_com import IpApiComProvider
from geoip_locator.providers.ipapi_co import IpApiCoProvider
from geoip_locator.providers.maxmind import MaxMindProvider

__all__ = [
    "BaseLocationProvider",
    "IpApiComProvider",
    "IpApiCoProvider",
    "MaxMindProvider",
]
