"""Tests for clipboard providers."""

import base64
import io
import subprocess
from unittest.mock import MagicMock, patch

from issue_table.clipboard import (
    ClipboardConfig,
    ClipboardMechanism,
    NativeProvider,
    OSC52Provider,
    create_provider,
)
from issue_table.clipboard.osc52 import OSC52_MAX_BYTES, encode_osc52


class TestOSC52:
    """Tests for the OSC 52 provider."""

    def test_encode(self):
        seq = encode_osc52("X-1\tOpen")
        assert seq.startswith("\x1b]52;c;")
        assert seq.endswith("\x07")
        payload = seq[len("\x1b]52;c;"):-1]
        assert base64.b64decode(payload).decode("utf-8") == "X-1\tOpen"

    def test_oversized_payload_truncated(self):
        seq = encode_osc52("x" * (OSC52_MAX_BYTES * 2))
        payload = seq[len("\x1b]52;c;"):-1]
        assert len(payload) <= OSC52_MAX_BYTES

    def test_copy_writes_sequence(self):
        stream = io.StringIO()
        provider = OSC52Provider(stream=stream)
        assert provider.copy("X-1") is True
        assert stream.getvalue() == encode_osc52("X-1")
        assert provider.name == "OSC 52"

    def test_copy_empty(self):
        stream = io.StringIO()
        assert OSC52Provider(stream=stream).copy("") is False
        assert stream.getvalue() == ""


class TestNative:
    """Tests for the native tool provider."""

    def test_unavailable(self):
        with patch("issue_table.clipboard.native.detect_tool", return_value=None):
            provider = NativeProvider()
        assert not provider.available
        assert provider.copy("X-1") is False
        assert "unavailable" in provider.name

    def test_copy_runs_tool(self):
        with patch("issue_table.clipboard.native.detect_tool", return_value=("xclip", ["xclip", "-selection", "clipboard"])):
            provider = NativeProvider()
        result = MagicMock(returncode=0, stderr=b"")
        with patch("issue_table.clipboard.native.subprocess.run", return_value=result) as run:
            assert provider.copy("X-1") is True
        run.assert_called_once()
        assert run.call_args.args[0] == ["xclip", "-selection", "clipboard"]
        assert run.call_args.kwargs["input"] == b"X-1"

    def test_tool_failure(self):
        with patch("issue_table.clipboard.native.detect_tool", return_value=("pbcopy", ["pbcopy"])):
            provider = NativeProvider()
        with patch("issue_table.clipboard.native.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("pbcopy", 5)):
            assert provider.copy("X-1") is False


class TestConfig:
    """Tests for clipboard configuration."""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("ISSUE_TABLE_COPY_MECHANISM", raising=False)
        config = ClipboardConfig.from_env()
        assert config.mechanism == ClipboardMechanism.OSC52
        assert config.field_separator == "\t"

    def test_native(self, monkeypatch):
        monkeypatch.setenv("ISSUE_TABLE_COPY_MECHANISM", "NATIVE")
        assert ClipboardConfig.from_env().mechanism == ClipboardMechanism.NATIVE

    def test_unknown_falls_back(self, monkeypatch):
        monkeypatch.setenv("ISSUE_TABLE_COPY_MECHANISM", "carrier-pigeon")
        assert ClipboardConfig.from_env().mechanism == ClipboardMechanism.OSC52

    def test_create_provider(self):
        assert isinstance(create_provider(ClipboardConfig()), OSC52Provider)
        with patch("issue_table.clipboard.native.detect_tool", return_value=None):
            provider = create_provider(ClipboardConfig(mechanism=ClipboardMechanism.NATIVE))
        assert isinstance(provider, NativeProvider)
