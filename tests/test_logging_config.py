import logging

from vechain_mcp.config import VeChainConfig
from vechain_mcp.server import JsonFormatter, configure_logging


def test_logging_level_config(monkeypatch):
    installed = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: installed.update(kwargs))

    configure_logging(VeChainConfig.for_network("TESTNET", log_level="debug", log_format="json"))
    assert installed["level"] == logging.DEBUG
    assert isinstance(installed["handlers"][0].formatter, JsonFormatter)

    installed.clear()
    configure_logging(VeChainConfig.for_network("TESTNET", log_level="nonsense", log_format="plain"))
    assert installed == {"level": logging.INFO}
