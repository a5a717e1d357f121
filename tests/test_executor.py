import io
import json
import sys

import pytest
from mcp import types

from ynab_skill.executor import main, render_content, server_parameters


def test_default_server_parameters(monkeypatch):
    monkeypatch.setenv("YNAB_API_TOKEN", "abc")

    params = server_parameters()

    assert params.command == sys.executable
    assert params.args == ["-m", "ynab_skill"]
    assert params.env["YNAB_API_TOKEN"] == "abc"


def test_server_parameters_from_config(tmp_path):
    cfg = tmp_path / "mcp-config.json"
    cfg.write_text(json.dumps({
        "command": "ynab-mcp-server",
        "args": [],
        "env": {"YNAB_API_TOKEN": "from-config"},
    }))

    params = server_parameters(cfg)

    assert params.command == "ynab-mcp-server"
    assert params.args == []
    assert params.env["YNAB_API_TOKEN"] == "from-config"


def test_render_text_content():
    out = io.StringIO()
    render_content([types.TextContent(type="text", text="Open Accounts:\n- Cash (ID: a1)")], out)
    assert out.getvalue() == "Open Accounts:\n- Cash (ID: a1)\n"


def test_render_non_text_as_json():
    out = io.StringIO()
    render_content({"kind": "other"}, out)
    assert json.loads(out.getvalue()) == {"kind": "other"}


def test_requires_an_action():
    with pytest.raises(SystemExit):
        main([])
