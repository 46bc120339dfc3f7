from vechain_mcp.config import (
    DEFAULT_HTTP_TIMEOUT,
    MAINNET_RPC_URL,
    MAINNET_THOREST_URL,
    TESTNET_THOREST_URL,
    VeChainConfig,
    _env_flag,
    _load_port,
    _load_timeout,
    is_mainnet,
    load_secret_key,
)


def test_load_timeout_invalid_env(monkeypatch):
    monkeypatch.setenv("VECHAIN_HTTP_TIMEOUT", "not-a-number")
    assert _load_timeout() == DEFAULT_HTTP_TIMEOUT


def test_load_timeout_valid_env(monkeypatch):
    monkeypatch.setenv("VECHAIN_HTTP_TIMEOUT", "5.5")
    assert _load_timeout() == 5.5


def test_load_port_falls_back(monkeypatch):
    monkeypatch.setenv("PORT", "abc")
    assert _load_port() == 3000
    monkeypatch.setenv("PORT", "8080")
    assert _load_port() == 8080


def test_env_flag(monkeypatch):
    monkeypatch.delenv("SOME_FLAG", raising=False)
    assert _env_flag("SOME_FLAG", default=True) is True
    monkeypatch.setenv("SOME_FLAG", "Yes")
    assert _env_flag("SOME_FLAG") is True
    monkeypatch.setenv("SOME_FLAG", "false")
    assert _env_flag("SOME_FLAG", default=True) is False


def test_network_selection():
    assert is_mainnet("mainnet")
    assert not is_mainnet("TESTNET")
    assert not is_mainnet("")
    main = VeChainConfig.for_network("MAINNET")
    assert main.mainnet
    assert main.thorest_url == MAINNET_THOREST_URL
    assert main.rpc_url == MAINNET_RPC_URL
    test = VeChainConfig.for_network("TESTNET", timeout=2.0)
    assert test.thorest_url == TESTNET_THOREST_URL
    assert test.timeout == 2.0


def test_load_secret_key_env_over_file(monkeypatch, tmp_path):
    key_file = tmp_path / "key.txt"
    key_file.write_text("file-key\n", encoding="utf-8")
    monkeypatch.setenv("AGENT_SECRET_KEY", "env-key")
    monkeypatch.setenv("AGENT_SECRET_KEY_FILE", str(key_file))
    assert load_secret_key() == "env-key"
    monkeypatch.delenv("AGENT_SECRET_KEY")
    assert load_secret_key() == "file-key"


def test_load_secret_key_missing(monkeypatch, tmp_path):
    monkeypatch.delenv("AGENT_SECRET_KEY", raising=False)
    monkeypatch.setenv("AGENT_SECRET_KEY_FILE", str(tmp_path / "absent.txt"))
    assert load_secret_key() is None
