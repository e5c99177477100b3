import pytest

from sshed.core.errors import HostParseError
from sshed.services.parser import parse_host_block


def test_parses_typed_directives():
    host = parse_host_block(
        "Host web1\n"
        "  HostName 10.0.0.1\n"
        "  User deploy\n"
        "  Port 2222\n"
        "  IdentityFile ~/.ssh/id_ed25519\n"
        "  IdentityFile ~/.ssh/id_rsa\n"
        "  Ciphers aes128-ctr,aes256-ctr\n"
        "  MACs hmac-sha2-256\n"
        "  Compression yes\n"
        "  TCPKeepAlive no\n"
        "  ServerAliveInterval 30\n"
        "  ProxyJump bastion,jump2\n"
    )
    assert host.name == "web1"
    assert host.host_name == "10.0.0.1"
    assert host.user == "deploy"
    assert host.port == 2222
    assert host.identity_file == ["~/.ssh/id_ed25519", "~/.ssh/id_rsa"]
    assert host.ciphers == ["aes128-ctr", "aes256-ctr"]
    assert host.mac == ["hmac-sha2-256"]
    assert host.compression is True
    assert host.tcp_keep_alive is False
    assert host.server_alive_interval == 30
    assert host.proxy_jump == ["bastion", "jump2"]


def test_keywords_are_case_insensitive_and_accept_equals():
    host = parse_host_block('host Foo\nHOSTNAME=example.org\nuser = "some user"')
    assert host.name == "Foo"
    assert host.host_name == "example.org"
    assert host.user == "some user"


def test_first_value_wins():
    host = parse_host_block("Host a\n  User first\n  User second")
    assert host.user == "first"


def test_no_host_line_returns_none():
    assert parse_host_block("") is None
    assert parse_host_block("# only a comment") is None
    assert parse_host_block("ServerAliveInterval 60") is None


def test_wildcard_section_is_not_a_host():
    assert parse_host_block("Host *\n  ServerAliveInterval 60") is None
    assert parse_host_block("Host *.example.com !bad.example.com\n  User x") is None


def test_multiple_patterns_form_the_name():
    host = parse_host_block("Host app app.example.com\n  User x")
    assert host.name == "app app.example.com"


def test_directives_before_host_are_ignored():
    host = parse_host_block("User global\nHost a\n  Port 22")
    assert host.user is None
    assert host.port == 22


def test_second_host_or_match_ends_the_section():
    host = parse_host_block("Host a\n  User one\nHost b\n  User two")
    assert host.name == "a"
    assert host.user == "one"

    host = parse_host_block("Host a\n  Port 22\nMatch user root\n  Port 23")
    assert host.port == 22


def test_unsupported_directives_are_kept_raw():
    host = parse_host_block("Host a\n  ForwardAgent yes\n  LocalForward 8080 localhost:80")
    assert host.unsupported_fields == {
        "forwardagent": ["yes"],
        "localforward": ["8080", "localhost:80"],
    }


def test_ignore_unknown_routes_to_ignored_fields():
    host = parse_host_block("IgnoreUnknown Use*,AddKeys\nHost a\n  UseRoaming no\n  AddKeys yes")
    assert host.ignored_fields == {"useroaming": ["no"], "addkeys": ["yes"]}


def test_ignore_unknown_inside_host_is_recorded():
    host = parse_host_block("Host a\n  IgnoreUnknown Foo\n  Foo bar")
    assert host.ignore_unknown == ["Foo"]
    assert host.ignored_fields == {"foo": ["bar"]}


def test_unknown_directive_is_rejected_in_strict_mode():
    with pytest.raises(HostParseError) as exc:
        parse_host_block("Host a\n  Frobnicate yes")
    assert "frobnicate" in str(exc.value)
    assert exc.value.line == 2


def test_unknown_directive_is_kept_in_lenient_mode():
    host = parse_host_block("Host a\n  Frobnicate yes", strict=False)
    assert host.ignored_fields == {"frobnicate": ["yes"]}


@pytest.mark.parametrize("line", [
    "Port http",
    "Port 70000",
    "Compression maybe",
    "ConnectTimeout -1",
    "User",
    'HostName "unterminated',
])
def test_invalid_values_raise(line):
    with pytest.raises(HostParseError):
        parse_host_block(f"Host a\n  {line}")
