"""Grammar for the connection directives of a single ``Host`` section.

Only the first ``Host`` section of the text is returned. Directives that
precede it belong to the implicit ``*`` section and are dropped, and a second
``Host`` or a ``Match`` line ends the section.
"""
from typing import Callable, Dict, List, Optional, Tuple
import fnmatch
import re
import shlex

from sshed.core.errors import HostParseError
from sshed.schemas.host import ParsedHost

_LINE_RE = re.compile(r"^([^\s=]+)(?:\s*=\s*|\s+)?(.*)$")
_WILDCARD_CHARS = ("*", "?")
_BOOL_VALUES = {"yes": True, "true": True, "no": False, "false": False}


def _as_str(args: List[str]) -> str:
    return " ".join(args)


def _as_int(args: List[str]) -> int:
    if len(args) != 1:
        raise ValueError("expected a single integer")
    value = int(args[0])
    if value < 0:
        raise ValueError("must not be negative")
    return value


def _as_port(args: List[str]) -> int:
    value = _as_int(args)
    if not 0 < value < 65536:
        raise ValueError(f"port out of range: {value}")
    return value


def _as_bool(args: List[str]) -> bool:
    if len(args) != 1 or args[0].lower() not in _BOOL_VALUES:
        raise ValueError("expected yes or no")
    return _BOOL_VALUES[args[0].lower()]


def _as_list(args: List[str]) -> List[str]:
    items = [item.strip() for arg in args for item in arg.split(",")]
    items = [item for item in items if item]
    if not items:
        raise ValueError("expected a comma separated list")
    return items


# keyword -> (field, converter, repeatable)
SUPPORTED: Dict[str, Tuple[str, Callable[[List[str]], object], bool]] = {
    "hostname": ("host_name", _as_str, False),
    "user": ("user", _as_str, False),
    "port": ("port", _as_port, False),
    "identityfile": ("identity_file", _as_str, True),
    "certificatefile": ("certificate_file", _as_str, True),
    "proxyjump": ("proxy_jump", _as_list, False),
    "bindaddress": ("bind_address", _as_str, False),
    "bindinterface": ("bind_interface", _as_str, False),
    "ciphers": ("ciphers", _as_list, False),
    "macs": ("mac", _as_list, False),
    "kexalgorithms": ("kex_algorithms", _as_list, False),
    "hostkeyalgorithms": ("host_key_algorithms", _as_list, False),
    "casignaturealgorithms": ("ca_signature_algorithms", _as_list, False),
    "pubkeyacceptedalgorithms": ("pubkey_accepted_algorithms", _as_list, False),
    "pubkeyacceptedkeytypes": ("pubkey_accepted_algorithms", _as_list, False),
    "pubkeyauthentication": ("pubkey_authentication", _as_bool, False),
    "compression": ("compression", _as_bool, False),
    "connectionattempts": ("connection_attempts", _as_int, False),
    "connecttimeout": ("connect_timeout", _as_int, False),
    "serveraliveinterval": ("server_alive_interval", _as_int, False),
    "tcpkeepalive": ("tcp_keep_alive", _as_bool, False),
    "remoteforward": ("remote_forward", _as_str, False),
    "usekeychain": ("use_keychain", _as_bool, False),
}

# OpenSSH directives that are valid but not modelled as typed fields
UNSUPPORTED = frozenset({
    "addkeystoagent", "addressfamily", "batchmode", "canonicaldomains",
    "canonicalizefallbacklocal", "canonicalizehostname", "canonicalizemaxdots",
    "canonicalizepermittedcnames", "checkhostip", "clearallforwardings",
    "controlmaster", "controlpath", "controlpersist", "dynamicforward",
    "enableescapecommandline", "enablesshkeysign", "escapechar",
    "exitonforwardfailure", "fingerprinthash", "forkafterauthentication",
    "forwardagent", "forwardx11", "forwardx11timeout", "forwardx11trusted",
    "gatewayports", "globalknownhostsfile", "gssapiauthentication",
    "gssapidelegatecredentials", "hashknownhosts", "hostbasedacceptedalgorithms",
    "hostbasedauthentication", "hostkeyalias", "identitiesonly", "identityagent",
    "include", "ipqos", "kbdinteractiveauthentication", "kbdinteractivedevices",
    "knownhostscommand", "localcommand", "localforward", "loglevel", "logverbose",
    "nohostauthenticationforlocalhost", "numberofpasswordprompts",
    "passwordauthentication", "permitlocalcommand", "permitremoteopen",
    "pkcs11provider", "preferredauthentications", "proxycommand",
    "proxyusefdpass", "rekeylimit", "remotecommand", "requesttty",
    "requiredrsasize", "revokedhostkeys", "securitykeyprovider", "sendenv",
    "serveralivecountmax", "sessiontype", "setenv", "stdinnull",
    "streamlocalbindmask", "streamlocalbindunlink", "stricthostkeychecking",
    "syslogfacility", "tag", "tunnel", "tunneldevice", "updatehostkeys",
    "userknownhostsfile", "verifyhostkeydns", "visualhostkey", "xauthlocation",
})


def _split_line(line: str, lineno: int) -> Tuple[str, List[str]]:
    match = _LINE_RE.match(line)
    if not match:
        raise HostParseError(f"cannot parse {line!r}", lineno)
    keyword, rest = match.group(1), match.group(2).strip()
    try:
        args = shlex.split(rest) if rest else []
    except ValueError as e:
        raise HostParseError(f"{keyword}: {e}", lineno)
    if not args:
        raise HostParseError(f"{keyword} requires a value", lineno)
    return keyword.lower(), args


def _is_pattern_only(patterns: List[str]) -> bool:
    return all(p.startswith("!") or any(c in p for c in _WILDCARD_CHARS) for p in patterns)


def _ignored(keyword: str, patterns: List[str]) -> bool:
    return any(fnmatch.fnmatchcase(keyword, p.lower()) for p in patterns)


def parse_host_block(text: str, strict: bool = True) -> Optional[ParsedHost]:
    """Parses the first ``Host`` section of ``text``.

    Args:
        text: Config text with at most one meaningful ``Host`` section.
        strict: Reject unknown directives that no ``IgnoreUnknown`` pattern
            covers. When False they are kept in ``ignored_fields``.

    Returns:
        The parsed host, or None if the text has no ``Host`` line or the
        section only holds wildcard patterns (defaults, not a host).

    Raises:
        HostParseError: On malformed lines or invalid directive values.
    """
    values: Dict[str, object] = {}
    ignored: Dict[str, List[str]] = {}
    unsupported: Dict[str, List[str]] = {}
    ignore_patterns: List[str] = []
    name: Optional[str] = None
    patterns: List[str] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        keyword, args = _split_line(line, lineno)

        if keyword == "host":
            if name is not None:
                break
            patterns = args
            name = " ".join(args)
            continue
        if keyword == "match":
            if name is not None:
                break
            continue

        if keyword == "ignoreunknown":
            try:
                ignore_patterns.extend(_as_list(args))
            except ValueError as e:
                raise HostParseError(f"IgnoreUnknown: {e}", lineno)
            if name is not None:
                values.setdefault("ignore_unknown", [])
                values["ignore_unknown"].extend(_as_list(args))
            continue

        if name is None:
            # Directive of the implicit "*" section
            continue

        if keyword in SUPPORTED:
            field, convert, repeatable = SUPPORTED[keyword]
            try:
                value = convert(args)
            except ValueError as e:
                raise HostParseError(f"{keyword}: {e}", lineno)
            if repeatable:
                values.setdefault(field, [])
                values[field].append(value)
            elif field not in values:
                # First obtained value wins, as in ssh(1)
                values[field] = value
        elif keyword in UNSUPPORTED:
            unsupported.setdefault(keyword, []).extend(args)
        elif _ignored(keyword, ignore_patterns) or not strict:
            ignored.setdefault(keyword, []).extend(args)
        else:
            raise HostParseError(f"unknown directive {keyword!r}", lineno)

    if name is None or _is_pattern_only(patterns):
        return None

    return ParsedHost(
        name=name,
        ignored_fields=ignored,
        unsupported_fields=unsupported,
        **values,
    )
