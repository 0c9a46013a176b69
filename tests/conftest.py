from collections.abc import Iterator

import pytest

from geoip_locator.logger import diagnostic_logger


@pytest.fixture(autouse=True)
def _capture_diagnostic_log(caplog: pytest.LogCaptureFixture) -> Iterator[None]:
    """The diagnostic logger does not propagate, so caplog has to listen on it directly."""
    diagnostic_logger.addHandler(caplog.handler)
    yield
    diagnostic_logger.removeHandler(caplog.handler)
