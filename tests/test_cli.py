"""Tests for the command line interface."""

from __future__ import annotations

import base64
import json
from unittest.mock import patch

import pytest

from csp_header.__main__ import describe_policy, main
from csp_header.model.policy import Policy


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("csp_header.__main__.setup_logging"):
        yield


class TestParseCommand:
    def test_normalizes(self, capsys):
        assert main(["parse", "  default-src 'self' ;  script-src   'none' ;"]) == 0
        assert capsys.readouterr().out.strip() == "default-src 'self'; script-src 'none'"

    def test_json(self, capsys):
        assert main(["parse", "script-src 'self' 'nonce-abc' https:; foo bar", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        script, foo = payload["directives"]
        assert script["well_known"] is True
        assert [s["kind"] for s in script["sources"]] == ["keyword", "nonce", "scheme"]
        assert foo == {"name": "foo", "well_known": False, "sources": [{"kind": "host", "value": "bar"}]}


class TestInjectCommand:
    def test_script_with_nonce(self, capsys):
        assert main(["inject", "script-src 'self'", "--nonce", "foobar"]) == 0
        assert capsys.readouterr().out.strip() == "script-src 'nonce-foobar' 'self'"

    def test_style_without_nonce(self, capsys):
        assert main(["inject", "style-src 'self'", "--kind", "style"]) == 0
        assert capsys.readouterr().out.strip() == "style-src 'unsafe-inline' 'self'"

    def test_generated_nonce(self, capsys):
        assert main(["inject", "script-src 'none'", "--generate-nonce"]) == 0
        nonce, policy = capsys.readouterr().out.strip().splitlines()
        assert len(base64.b64decode(nonce)) == 16
        assert policy == f"script-src 'nonce-{nonce}'"

    def test_generation_failure(self, capsys):
        with patch("csp_header.__main__.generate_nonce", return_value=None):
            assert main(["inject", "script-src 'none'", "--generate-nonce"]) == 1
        assert "could not generate a nonce" in capsys.readouterr().err


class TestPresetCommand:
    def test_named(self, capsys):
        assert main(["preset", "strict"]) == 0
        assert capsys.readouterr().out.startswith("default-src 'self'; script-src 'self'")

    def test_unknown(self, capsys):
        assert main(["preset", "nope"]) == 1
        assert "Unknown policy preset: nope" in capsys.readouterr().err


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_describe_policy(self):
        description = describe_policy(Policy.parse("object-src 'none'"))
        assert description == {
            "policy": "object-src 'none'",
            "directives": [{"name": "object-src", "well_known": True, "sources": []}],
        }
