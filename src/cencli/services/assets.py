"""Asset identifiers accepted by ``censys view``.

Raw arguments are classified as host IPs, certificate SHA-256 fingerprints or
web properties (``hostname[:port]``, default port 443). Common defanging such
as ``1.1.1[.]1`` or ``hxxps://example[.]com`` is undone first.
"""

from __future__ import annotations

import ipaddress
import re
import string
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from cencli.core.errors import CencliError

DEFAULT_WEB_PROPERTY_PORT = 443

_DEFANG_DOT = re.compile(r"\[\s*\.\s*\]|\(\s*\.\s*\)|\{\s*\.\s*\}|\\\.")
_DEFANG_COLON = re.compile(r"\[\s*:\s*\]|\(\s*:\s*\)")
_DEFANG_SCHEME = re.compile(r"^(hxxp)(s?)(\[:\]|:)?//", re.IGNORECASE)
_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_HEX = set(string.hexdigits)


class AssetType(str, Enum):
    HOST = "host"
    CERTIFICATE = "certificate"
    WEB_PROPERTY = "webproperty"


class InvalidAssetIDError(CencliError):
    title = "Invalid Asset ID"
    should_print_usage = True

    def __init__(self, asset_id: str, reason: str) -> None:
        super().__init__(f"invalid asset ID: {asset_id} ({reason})")
        self.asset_id = asset_id


class NoAssetsError(CencliError):
    title = "No Assets"
    should_print_usage = True

    def __init__(self) -> None:
        super().__init__("you must provide at least one asset")


class MixedAssetTypesError(CencliError):
    title = "Mixed Asset Types"
    should_print_usage = True

    def __init__(self, *types_found: AssetType) -> None:
        super().__init__(
            "mixed asset types: " + ", ".join(t.value for t in types_found),
        )
        self.types_found = types_found


def refang(raw: str) -> str:
    """Undo common defanging of IPs, hostnames and URLs."""
    text = raw.strip()
    text = _DEFANG_SCHEME.sub(lambda m: f"http{m.group(2).lower()}://", text)
    text = _DEFANG_DOT.sub(".", text)
    return _DEFANG_COLON.sub(":", text)


def parse_host_id(raw: str) -> str:
    """Validate an IPv4 or IPv6 address.

    Raises
    ------
    ValueError
        If ``raw`` is not an IP address
    """
    candidate = refang(raw)
    return str(ipaddress.ip_address(candidate))


def parse_certificate_id(raw: str) -> str:
    """Validate a SHA-256 fingerprint (64 hex characters).

    Raises
    ------
    ValueError
        If ``raw`` is not a fingerprint
    """
    candidate = raw.strip()
    if len(candidate) != 64:
        msg = f"invalid certificate fingerprint length: {len(candidate)}"
        raise ValueError(msg)
    if not set(candidate) <= _HEX:
        msg = "invalid certificate fingerprint hex"
        raise ValueError(msg)
    return candidate.lower()


def _looks_like_ipv4(host: str) -> bool:
    parts = host.split(".")
    return len(parts) == 4 and all(part.isdigit() for part in parts)


def parse_web_property_id(raw: str, default_port: int = DEFAULT_WEB_PROPERTY_PORT) -> str:
    """Validate a web property and normalise it to ``hostname:port``.

    A scheme and any path are dropped. Bare IPv6 addresses get the default
    port; use brackets (``[::1]:8443``) to give one explicitly.

    Raises
    ------
    ValueError
        If no usable hostname or port can be extracted
    """
    text = _SCHEME.sub("", refang(raw))
    text = text.split("/", 1)[0].strip()
    if not text:
        msg = "missing hostname"
        raise ValueError(msg)

    port_text = ""
    if text.startswith("["):
        end = text.find("]")
        if end < 0:
            msg = "unterminated IPv6 bracket"
            raise ValueError(msg)
        host = text[1:end]
        rest = text[end + 1 :]
        if rest.startswith(":"):
            port_text = rest[1:]
        elif rest:
            msg = f"unexpected text after address: {rest}"
            raise ValueError(msg)
        ipaddress.IPv6Address(host)
        host = f"[{host}]"
    elif text.count(":") > 1:
        ipaddress.IPv6Address(text)
        host = f"[{text}]"
    else:
        host, _, port_text = text.partition(":")
        host = host.strip()
        if not host:
            msg = "missing hostname"
            raise ValueError(msg)
        if _looks_like_ipv4(host):
            ipaddress.IPv4Address(host)
        elif "." not in host:
            msg = f"invalid hostname: {host}"
            raise ValueError(msg)

    port_text = port_text.strip()
    if not port_text:
        port = default_port
    elif port_text.isdigit():
        port = int(port_text)
    else:
        msg = f"invalid port: {port_text!r}"
        raise ValueError(msg)
    if not 0 < port <= 65535:
        msg = f"invalid port: {port}"
        raise ValueError(msg)
    return f"{host.lower()}:{port}"


def split_assets(raw: str) -> list[str]:
    """Split a comma or whitespace separated argument into assets."""
    return [part for part in re.split(r"[,\s]+", raw) if part]


@dataclass
class AssetClassifier:
    """Sorts raw arguments by asset type, keeping first-seen order.

    Duplicates (after normalisation) are dropped.
    """

    hosts: list[str] = field(default_factory=list)
    certificates: list[str] = field(default_factory=list)
    web_properties: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)

    @classmethod
    def classify(cls, raw_assets: Iterable[str]) -> AssetClassifier:
        classifier = cls()
        for raw in raw_assets:
            classifier.add(raw)
        return classifier

    def add(self, raw: str) -> None:
        raw = raw.strip()
        if not raw:
            return
        for parser, bucket in (
            (parse_host_id, self.hosts),
            (parse_certificate_id, self.certificates),
            (parse_web_property_id, self.web_properties),
        ):
            try:
                value = parser(raw)
            except ValueError:
                continue
            if value not in bucket:
                bucket.append(value)
            return
        if raw not in self.unknown:
            self.unknown.append(raw)

    def asset_type(self) -> AssetType:
        """The single asset type present.

        Raises
        ------
        InvalidAssetIDError
            If any argument could not be classified
        MixedAssetTypesError
            If more than one type is present
        NoAssetsError
            If there were no assets at all
        """
        if self.unknown:
            raise InvalidAssetIDError(self.unknown[0], "unable to infer asset type")
        found = [
            asset_type
            for asset_type, bucket in (
                (AssetType.HOST, self.hosts),
                (AssetType.CERTIFICATE, self.certificates),
                (AssetType.WEB_PROPERTY, self.web_properties),
            )
            if bucket
        ]
        if not found:
            raise NoAssetsError
        if len(found) > 1:
            raise MixedAssetTypesError(*found)
        return found[0]

    def ids(self, asset_type: AssetType) -> list[str]:
        return {
            AssetType.HOST: self.hosts,
            AssetType.CERTIFICATE: self.certificates,
            AssetType.WEB_PROPERTY: self.web_properties,
        }[asset_type]
