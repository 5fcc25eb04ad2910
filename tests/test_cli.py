import base64
import re

import pytest
from cryptography.hazmat.primitives import serialization

from envkeys import provision_env_keys
from envkeys.cli import main
from envkeys.config import Settings
from envkeys.exceptions import ConfigurationError

ENV_VARS = [
    "ENVKEYS_KEY_SIZE",
    "ENVKEYS_OUTPUT",
    "ENVKEYS_PROFILE",
    "ENVKEYS_TIMEOUT",
    "ENVKEYS_PRIVATE_NAME",
    "ENVKEYS_PUBLIC_NAME",
    "ENVKEYS_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.KEY_SIZE == 3072
        assert settings.OUTPUT == ".env"
        assert settings.PROFILE == "pkcs1"
        assert settings.TIMEOUT is None
        assert (settings.PRIVATE_NAME, settings.PUBLIC_NAME) == ("JWT_PRIVATE", "JWT_PUBLIC")

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("ENVKEYS_KEY_SIZE", "4096")
        monkeypatch.setenv("ENVKEYS_TIMEOUT", "2.5")
        monkeypatch.setenv("ENVKEYS_PROFILE", "pkcs8")
        settings = Settings()
        assert settings.KEY_SIZE == 4096
        assert settings.TIMEOUT == 2.5
        assert settings.PROFILE == "pkcs8"

    @pytest.mark.parametrize("name, value", [
        ("ENVKEYS_KEY_SIZE", "big"),
        ("ENVKEYS_TIMEOUT", "soon"),
        ("ENVKEYS_TIMEOUT", "-1"),
        ("ENVKEYS_TIMEOUT", "inf"),
        ("ENVKEYS_TIMEOUT", "nan"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            Settings()


class TestCli:

    def test_writes_env_file(self, tmp_path, capsys):
        dest = tmp_path / ".env"
        assert main(["2048", "-o", str(dest)]) == 0

        lines = dest.read_text().splitlines()
        assert len(lines) == 2
        assert re.match(r"^JWT_PRIVATE=[A-Za-z0-9+/=]+$", lines[0])
        assert re.match(r"^JWT_PUBLIC=[A-Za-z0-9+/=]+$", lines[1])
        public_key = serialization.load_der_public_key(base64.b64decode(lines[1].split("=", 1)[1]))
        assert public_key.key_size == 2048
        assert "2048 bits, pkcs1" in capsys.readouterr().out

    def test_empty_bits_uses_configured_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVKEYS_KEY_SIZE", "2048")
        dest = tmp_path / ".env"
        assert main(["", "-o", str(dest)]) == 0
        line = dest.read_text().splitlines()[1]
        public_key = serialization.load_der_public_key(base64.b64decode(line.split("=", 1)[1]))
        assert public_key.key_size == 2048

    def test_check_with_pkcs8(self, tmp_path, capsys):
        dest = tmp_path / ".env"
        assert main(["2048", "-o", str(dest), "--profile", "pkcs8", "--check"]) == 0
        private_der = base64.b64decode(dest.read_text().splitlines()[0].split("=", 1)[1])
        serialization.load_der_private_key(private_der, password=None)

    @pytest.mark.parametrize("bits", ["0", "-1", "512"])
    def test_invalid_bits(self, tmp_path, capsys, bits):
        dest = tmp_path / ".env"
        dest.write_text("JWT_PRIVATE=keep\nJWT_PUBLIC=keep\n")
        assert main([bits, "-o", str(dest)]) == 1
        assert "generate failed" in capsys.readouterr().err
        assert dest.read_text() == "JWT_PRIVATE=keep\nJWT_PUBLIC=keep\n"

    def test_unwritable_destination(self, tmp_path, capsys):
        assert main(["2048", "-o", str(tmp_path / "missing" / ".env")]) == 1
        assert "write failed" in capsys.readouterr().err

    def test_unknown_profile_is_usage_error(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["2048", "-o", str(tmp_path / ".env"), "--profile", "pem"])
        assert excinfo.value.code == 2

    def test_bad_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("ENVKEYS_KEY_SIZE", "big")
        assert main([]) == 1
        assert "configure failed" in capsys.readouterr().err

    @pytest.mark.parametrize("timeout", ["inf", "nan", "0"])
    def test_invalid_timeout(self, tmp_path, capsys, timeout):
        dest = tmp_path / ".env"
        assert main(["2048", "-o", str(dest), "--timeout", timeout]) == 1
        assert "configure failed" in capsys.readouterr().err
        assert not dest.exists()

    def test_bad_profile_from_environment(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("ENVKEYS_PROFILE", "pem")
        assert main(["2048", "-o", str(tmp_path / ".env")]) == 1
        assert "configure failed" in capsys.readouterr().err


class TestProvisionEnvKeys:

    def test_uses_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVKEYS_PRIVATE_NAME", "SIGNING_KEY")
        monkeypatch.setenv("ENVKEYS_PUBLIC_NAME", "VERIFY_KEY")
        result = provision_env_keys(2048, tmp_path / "keys.env", profile="pkcs8")
        assert [e.name for e in result.entries] == ["SIGNING_KEY", "VERIFY_KEY"]
        assert result.profile == "pkcs8"
        assert (tmp_path / "keys.env").read_text().startswith("SIGNING_KEY=")
