"""Tests for botbrain_paths — data directory resolution."""

import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from botbrain_paths import (
    get_botbrain_home,
    get_checkpoint_dir,
    get_checkpoint_path,
    get_log_dir,
    read_conf,
)


def _env_without_home():
    return {k: v for k, v in os.environ.items() if k != "BOTBRAIN_HOME"}


# ------------------------------------------------------------------
# get_botbrain_home resolution order
# ------------------------------------------------------------------

class TestResolutionOrder:
    """BOTBRAIN_HOME env > conf file > default."""

    def test_env_var_highest_priority(self, tmp_path):
        env_dir = str(tmp_path / "from_env")
        conf_file = tmp_path / "test.conf"
        conf_file.write_text(json.dumps({"botbrain_home": str(tmp_path / "from_conf")}))

        with patch.dict(os.environ, {"BOTBRAIN_HOME": env_dir}, clear=False):
            with patch("botbrain_paths._CONF_FILE", str(conf_file)):
                result = get_botbrain_home()
        assert result == Path(env_dir).resolve()

    def test_conf_file_second_priority(self, tmp_path):
        conf_dir = str(tmp_path / "from_conf")
        conf_file = tmp_path / "test.conf"
        conf_file.write_text(json.dumps({"botbrain_home": conf_dir}))

        with patch.dict(os.environ, _env_without_home(), clear=True):
            with patch("botbrain_paths._CONF_FILE", str(conf_file)):
                result = get_botbrain_home()
        assert result == Path(conf_dir).resolve()

    def test_default_fallback(self, tmp_path):
        with patch.dict(os.environ, _env_without_home(), clear=True):
            with patch("botbrain_paths._CONF_FILE", str(tmp_path / "nonexistent.conf")):
                result = get_botbrain_home()
        assert result == Path("~/.botbrain").expanduser().resolve()

    def test_corrupt_conf_falls_through(self, tmp_path):
        conf_file = tmp_path / "bad.conf"
        conf_file.write_text("this is not json {{{")

        with patch.dict(os.environ, _env_without_home(), clear=True):
            with patch("botbrain_paths._CONF_FILE", str(conf_file)):
                result = get_botbrain_home()
        assert result == Path("~/.botbrain").expanduser().resolve()

    def test_non_object_conf_falls_through(self, tmp_path):
        conf_file = tmp_path / "list.conf"
        conf_file.write_text(json.dumps(["/somewhere"]))

        with patch.dict(os.environ, _env_without_home(), clear=True):
            with patch("botbrain_paths._CONF_FILE", str(conf_file)):
                result = get_botbrain_home()
        assert result == Path("~/.botbrain").expanduser().resolve()


# ------------------------------------------------------------------
# Convenience accessors
# ------------------------------------------------------------------

class TestConvenience:
    def test_checkpoint_dir(self, tmp_path):
        with patch.dict(os.environ, {"BOTBRAIN_HOME": str(tmp_path)}, clear=False):
            assert get_checkpoint_dir() == (tmp_path / "checkpoints").resolve()

    def test_checkpoint_path(self, tmp_path):
        with patch.dict(os.environ, {"BOTBRAIN_HOME": str(tmp_path)}, clear=False):
            assert get_checkpoint_path() == (tmp_path / "checkpoints" / "network.msgpack").resolve()

    def test_log_dir(self, tmp_path):
        with patch.dict(os.environ, {"BOTBRAIN_HOME": str(tmp_path)}, clear=False):
            assert get_log_dir() == (tmp_path / "logs").resolve()


# ------------------------------------------------------------------
# Config file reading
# ------------------------------------------------------------------

class TestConfFile:
    def _write(self, tmp_path, payload):
        conf = tmp_path / "test.conf"
        conf.write_text(payload if isinstance(payload, str) else json.dumps(payload))
        return str(conf)

    def test_reads_home(self, tmp_path):
        conf = self._write(tmp_path, {"botbrain_home": "/srv/botbrain"})
        assert read_conf(conf_path=conf) == "/srv/botbrain"

    def test_read_missing_returns_none(self, tmp_path):
        assert read_conf(conf_path=str(tmp_path / "nope.conf")) is None

    def test_blank_value_returns_none(self, tmp_path):
        conf = self._write(tmp_path, {"botbrain_home": "   "})
        assert read_conf(conf_path=conf) is None

    def test_missing_key_returns_none(self, tmp_path):
        conf = self._write(tmp_path, {"other": "/x"})
        assert read_conf(conf_path=conf) is None

    def test_value_whitespace_stripped(self, tmp_path):
        conf = self._write(tmp_path, {"botbrain_home": "  ~/robot \n"})
        assert read_conf(conf_path=conf) == "~/robot"

    def test_directory_is_not_a_conf(self, tmp_path):
        assert read_conf(conf_path=str(tmp_path)) is None
