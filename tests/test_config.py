"""Tests for configuration loading."""

import pytest

from kvmctl.config import DeviceConfig, load_config


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "missing.toml") == DeviceConfig()


def test_defaults():
    config = DeviceConfig()
    assert (config.host, config.port, config.num_ports) == ("192.168.1.10", 5000, 8)
    assert (config.timeout, config.delay, config.attempts) == (5.0, 1.0, 3)


def test_load_device_table(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[device]\nhost = "10.0.0.5"\nport = 5001\ndelay = 0.5\nnum_ports = 16\nattempts = 5\n'
    )
    config = load_config(path)
    assert config.host == "10.0.0.5"
    assert config.port == 5001
    assert config.delay == 0.5
    assert config.num_ports == 16
    assert config.attempts == 5
    assert config.timeout == 5.0


def test_missing_device_table_gives_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("# nothing here\n")
    assert load_config(path) == DeviceConfig()


def test_malformed_toml_warns(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[device\nhost = ")
    with pytest.warns(UserWarning, match="Failed to load config"):
        assert load_config(path) == DeviceConfig()


def test_device_not_a_table_warns(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('device = "kvm"\n')
    with pytest.warns(UserWarning, match="must be a table"):
        assert load_config(path) == DeviceConfig()


def test_unknown_setting_is_ignored(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[device]\nhost = "10.0.0.5"\ncolour = "blue"\n')
    with pytest.warns(UserWarning, match="Unknown setting 'colour'"):
        config = load_config(path)
    assert config.host == "10.0.0.5"


def test_unparseable_value_is_ignored(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[device]\nport = "five thousand"\nnum_ports = 16\n')
    with pytest.warns(UserWarning, match="invalid value"):
        config = load_config(path)
    assert config.port == 5000
    assert config.num_ports == 16


def test_out_of_range_value_gives_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[device]\nattempts = 0\n")
    with pytest.warns(UserWarning, match="Invalid attempts"):
        assert load_config(path) == DeviceConfig()


@pytest.mark.parametrize(
    "kwargs",
    [{"port": 0}, {"port": 70000}, {"timeout": 0}, {"delay": -1}, {"num_ports": 0}, {"num_ports": 257},
     {"attempts": 0}],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        DeviceConfig(**kwargs)


def test_max_ports_fits_one_byte_operand():
    assert DeviceConfig(num_ports=256).num_ports == 256


def test_too_many_ports_in_file_gives_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[device]\nnum_ports = 300\n")
    with pytest.warns(UserWarning, match="Must be between 1 and 256"):
        assert load_config(path) == DeviceConfig()


@pytest.mark.parametrize(
    "line, key",
    [("port = 5000.7", "port"), ("num_ports = 8.5", "num_ports"), ("num_ports = true", "num_ports"),
     ("delay = false", "delay")],
)
def test_non_integral_or_boolean_value_is_ignored(tmp_path, line, key):
    path = tmp_path / "config.toml"
    path.write_text(f"[device]\n{line}\n")
    with pytest.warns(UserWarning, match=f"Setting '{key}' .* has invalid value"):
        config = load_config(path)
    assert getattr(config, key) == getattr(DeviceConfig(), key)


def test_whole_float_value_is_accepted(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[device]\nport = 5001.0\n")
    assert load_config(path).port == 5001


def test_with_overrides_skips_none():
    config = DeviceConfig().with_overrides(host="10.0.0.9", port=None, delay=0.0)
    assert config.host == "10.0.0.9"
    assert config.port == 5000
    assert config.delay == 0.0


def test_config_is_immutable():
    config = DeviceConfig()
    with pytest.raises(AttributeError):
        config.host = "10.0.0.1"
