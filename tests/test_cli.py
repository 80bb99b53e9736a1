"""
Tests for the command-line entry point
"""
import json
import os

import pytest

from mcp_bridge import cli
from mcp_bridge.codecs import LengthPrefixedCodec
from mcp_bridge.config import FarTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("MCP_BRIDGE_"):
            monkeypatch.delenv(name)


def parse(argv):
    return cli.config_from_args(cli.build_parser().parse_args(argv))


def test_defaults():
    args = cli.build_parser().parse_args([])
    assert args.mode == "serve"

    config = parse([])
    assert config.far_transport == FarTransport.NATIVE
    assert config.far_port == 9876


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("MCP_BRIDGE_CALL_TIMEOUT_MS", "1000")
    monkeypatch.setenv("MCP_BRIDGE_FAR_PORT", "1111")

    config = parse(["--port", "2222", "--far-transport", "zeromq",
                    "--zmq-endpoint", "tcp://127.0.0.1:6000", "--log-level", "DEBUG", "--telemetry"])

    assert config.call_timeout_ms == 1000
    assert config.far_port == 2222
    assert config.far_transport == FarTransport.ZEROMQ
    assert config.zmq_endpoint == "tcp://127.0.0.1:6000"
    assert config.log_level == "DEBUG"
    assert config.enable_telemetry is True


def test_invalid_mode_exits():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["bogus"])


def test_main_rejects_invalid_config(capsys):
    assert cli.main(["--timeout-ms", "0"]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_main_runs_selected_mode(monkeypatch):
    seen = []

    async def fake_serve(config, tools=None):
        seen.append(("serve", config.far_port))

    async def fake_native(config):
        seen.append(("native", config.max_frame_bytes))

    monkeypatch.setattr(cli, "serve", fake_serve)
    monkeypatch.setattr(cli, "native", fake_native)

    assert cli.main(["--port", "4321"]) == 0
    assert cli.main(["native"]) == 0
    assert seen == [("serve", 4321), ("native", 1048576)]


def test_main_reports_fatal_error(monkeypatch):
    async def broken(config, tools=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "serve", broken)
    assert cli.main(["serve"]) == 1


def test_main_rejects_missing_tools_file(tmp_path, capsys):
    assert cli.main(["--tools-file", str(tmp_path / "missing.json")]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_main_rejects_malformed_tools_file(tmp_path, capsys):
    path = tmp_path / "tools.json"
    path.write_text('{"tools": [{"description": "no name"}]}')

    assert cli.main(["--tools-file", str(path)]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_main_passes_loaded_tools_to_serve(tmp_path, monkeypatch):
    path = tmp_path / "tools.json"
    path.write_text('[{"name": "only_tool"}]')
    seen = []

    async def fake_serve(config, tools=None):
        seen.append(tools)

    monkeypatch.setattr(cli, "serve", fake_serve)
    assert cli.main(["--tools-file", str(path)]) == 0
    assert seen == [[{"name": "only_tool"}]]


def run_with_files(monkeypatch, tmp_path, argv, data):
    """Run main() with stdin and stdout redirected to regular files"""
    stdin_path, stdout_path = tmp_path / "stdin", tmp_path / "stdout"
    stdin_path.write_bytes(data)

    with open(stdin_path, "rb") as stdin, open(stdout_path, "wb") as stdout:
        monkeypatch.setattr("sys.stdin", stdin)
        monkeypatch.setattr("sys.stdout", stdout)
        code = cli.main(argv)

    return code, stdout_path.read_bytes()


def test_serve_with_file_redirected_stdio(monkeypatch, tmp_path):
    requests = (
        b'{"jsonrpc":"2.0","id":0,"method":"initialize","params":{}}\n'
        b'{"jsonrpc":"2.0","id":1,"method":"tools/list"}\n'
    )
    code, output = run_with_files(monkeypatch, tmp_path, ["--port", "0"], requests)

    assert code == 0
    responses = [json.loads(line) for line in output.splitlines()]
    assert [response["id"] for response in responses] == [0, 1]
    assert responses[0]["result"]["serverInfo"]["name"] == "claude-firefox-mcp"
    assert len(responses[1]["result"]["tools"]) == 13


def test_native_with_file_redirected_stdio(monkeypatch, tmp_path):
    codec = LengthPrefixedCodec()
    code, output = run_with_files(monkeypatch, tmp_path, ["native"], codec.encode({"type": "hello"}))

    assert code == 0
    codec.feed(output)
    assert codec.next_message() == {"received": True, "echo": {"type": "hello"}}
