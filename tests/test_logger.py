from geoip_locator.logger import diagnostic_logger, logger


def test_diagnostic_logger_does_not_propagate() -> None:
    assert diagnostic_logger.name == "geoip"
    assert diagnostic_logger.propagate is False
    assert diagnostic_logger.handlers


def test_api_logger_does_not_propagate() -> None:
    assert logger.propagate is False
