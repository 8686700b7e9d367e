"""Short, human-readable renderers.

Each renderer returns a string; commands print it to stdout. Styling is
applied only when ``colored`` is true so that piped output stays plain.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import click

from cencli.core.output.templates import censys_link

SEPARATOR_WIDTH = 60


class Block:
    """Accumulates labelled lines and separators."""

    def __init__(self, colored: bool = False) -> None:
        self.colored = colored
        self._lines: list[str] = []

    def style(self, text: str, **styles: Any) -> str:
        return click.style(text, **styles) if self.colored else text

    def separator(self, label: str) -> None:
        head = f"━━━ {label} "
        self._lines.append(self.style(head.ljust(SEPARATOR_WIDTH, "━"), fg="magenta", bold=True))

    def line(self, label: str, value: Any, indent: int = 0) -> None:
        if value in (None, "", [], {}):
            return
        prefix = " " * indent
        self._lines.append(f"{prefix}{self.style(label, fg='cyan')}: {value}")

    def text(self, text: str) -> None:
        self._lines.append(text)

    def blank(self) -> None:
        if self._lines and self._lines[-1] != "":
            self._lines.append("")

    def __str__(self) -> str:
        return "\n".join(self._lines).rstrip("\n")


def _get(data: Any, *path: str, default: Any = None) -> Any:
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _first(values: Any) -> str:
    if isinstance(values, (list, tuple)):
        return str(values[0]) if values else ""
    return "" if values is None else str(values)


def format_number(value: Any) -> str:
    """Thousands-separated integer, or the value unchanged."""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return f"{int(value):,}"
    return "" if value is None else str(value)


def format_location(location: Any) -> str:
    if not isinstance(location, Mapping):
        return ""
    city = location.get("city") or ""
    province = location.get("province") or ""
    country = location.get("country") or ""
    code = location.get("continent") or ""
    parts = [city]
    if province and province.lower() != city.lower():
        parts.append(province)
    parts.append(f"{country} ({code})" if country and code else country)
    return ", ".join(part for part in parts if part)


def _services(block: Block, services: Any, title: str = "Services") -> None:
    if not isinstance(services, list) or not services:
        return
    block.blank()
    block.text(block.style(f"{title} ({len(services)}):", bold=True))
    ordered = sorted(
        (s for s in services if isinstance(s, Mapping)),
        key=lambda s: (s.get("port") or 0, str(s.get("protocol") or "")),
    )
    for service in ordered:
        port = service.get("port", "?")
        transport = str(service.get("transport_protocol") or "tcp").lower()
        protocol = service.get("protocol") or "UNKNOWN"
        entry = f"  {port}/{transport} {protocol}"
        software = _get(service, "software")
        if isinstance(software, list) and software:
            names = [
                " ".join(str(s.get(k)) for k in ("vendor", "product", "version") if s.get(k))
                for s in software
                if isinstance(s, Mapping)
            ]
            names = [name for name in names if name]
            if names:
                entry += f" ({', '.join(names)})"
        block.text(entry)


def render_host(block: Block, host: Mapping[str, Any]) -> None:
    ip = host.get("ip") or ""
    block.line("IP", block.style(ip, bold=True))
    block.line("Platform URL", censys_link("host", ip).removeprefix("https://"))
    asn = _get(host, "autonomous_system", "asn")
    as_name = str(_get(host, "autonomous_system", "name", default="")).upper()
    if asn or as_name:
        block.line("ASN", f"{asn or 0} ({as_name})")
    block.line("WHOIS Org", _get(host, "whois", "organization", "name"))
    block.line("Location", format_location(host.get("location")))
    names = _get(host, "dns", "names") or _get(host, "dns", "reverse_dns", "names")
    if isinstance(names, list) and names:
        block.line("DNS", ", ".join(str(n) for n in names[:5]))
    os_info = host.get("operating_system")
    if isinstance(os_info, Mapping):
        block.line(
            "Operating System",
            " ".join(str(os_info.get(k)) for k in ("vendor", "product", "version") if os_info.get(k)),
        )
    _services(block, host.get("services"))
    _services(block, host.get("matched_services"), title="Matched Services")


def render_certificate(block: Block, cert: Mapping[str, Any]) -> None:
    parsed = cert.get("parsed") or {}
    block.line("Certificate for", block.style(_first(_get(parsed, "subject", "common_name")), bold=True))
    org = _first(_get(parsed, "issuer", "organization"))
    cn = _first(_get(parsed, "issuer", "common_name"))
    if org and cn:
        block.line("Issuer", f"{org} ({cn})")
    else:
        block.line("Issuer", org or cn)
    start = _get(parsed, "validity_period", "not_before")
    end = _get(parsed, "validity_period", "not_after")
    if start or end:
        block.line("Valid", f"{start or '?'} to {end or '?'}")
    block.line("SHA-256", cert.get("fingerprint_sha256"))
    block.line("SHA-1", cert.get("fingerprint_sha1"))
    names = cert.get("names")
    if isinstance(names, list) and names:
        shown = ", ".join(str(n) for n in names[:10])
        if len(names) > 10:
            shown += f" (+{len(names) - 10} more)"
        block.line("Names", shown)
    block.line("Platform URL", censys_link("certificate", cert.get("fingerprint_sha256")).removeprefix("https://"))


def render_web_property(block: Block, prop: Mapping[str, Any]) -> None:
    hostname = prop.get("hostname") or ""
    port = prop.get("port")
    label = f"{hostname}:{port}" if port else hostname
    block.line("Web Property", block.style(label, bold=True))
    block.line("Platform URL", censys_link("webproperty", label).removeprefix("https://"))
    endpoints = prop.get("endpoints")
    if isinstance(endpoints, list) and endpoints:
        block.line("Endpoints", len(endpoints))
        for endpoint in endpoints[:10]:
            if not isinstance(endpoint, Mapping):
                continue
            path = endpoint.get("path") or "/"
            status = _get(endpoint, "http", "status_code")
            title = _get(endpoint, "http", "html_title")
            entry = f"  {path}"
            if status:
                entry += f" [{status}]"
            if title:
                entry += f" {title}"
            block.text(entry)
    software = prop.get("software")
    if isinstance(software, list) and software:
        names = [
            " ".join(str(s.get(k)) for k in ("vendor", "product", "version") if s.get(k))
            for s in software
            if isinstance(s, Mapping)
        ]
        block.line("Software", ", ".join(name for name in names if name))


_RENDERERS = {
    "host": ("Host", render_host),
    "certificate": ("Certificate", render_certificate),
    "webproperty": ("Web Property", render_web_property),
}


def assets(asset_type: str, items: Iterable[Any], colored: bool = False) -> str:
    """Render fetched assets of one type, numbered."""
    label, renderer = _RENDERERS[asset_type]
    block = Block(colored)
    for index, item in enumerate(items, start=1):
        if index > 1:
            block.blank()
        block.separator(f"{label} #{index}")
        if isinstance(item, Mapping):
            renderer(block, item)
    return str(block)


def search_hits(hits: Iterable[Mapping[str, Any]], colored: bool = False) -> str:
    """Render search hits of the form ``{asset_type: resource}``."""
    block = Block(colored)
    for index, hit in enumerate(hits, start=1):
        if index > 1:
            block.blank()
        for asset_type, resource in hit.items():
            label, renderer = _RENDERERS.get(asset_type, (asset_type, None))
            block.separator(f"Hit #{index} ({label.lower()})")
            if renderer is not None and isinstance(resource, Mapping):
                renderer(block, resource)
    return str(block)


def user_credits(data: Mapping[str, Any], colored: bool = False) -> str:
    block = Block(colored)
    block.separator("Your Free User Credit Details")
    line = f"{block.style(format_number(data.get('balance', 0)), bold=True)} credits"
    resets_at = data.get("resets_at")
    if resets_at:
        line += " " + block.style(f"(resets {str(resets_at)[:10]})", dim=True)
    block.line("Balance", line, indent=2)
    return str(block)


def organization_credits(data: Mapping[str, Any], colored: bool = False) -> str:
    block = Block(colored)
    block.separator("Organization Credit Details")
    block.line(
        "Balance",
        f"{block.style(format_number(data.get('balance', 0)), bold=True)} credits",
        indent=2,
    )
    auto = data.get("auto_replenish_config")
    if isinstance(auto, Mapping):
        state = "enabled" if auto.get("enabled") else "disabled"
        block.line("Auto Replenish", state, indent=2)
    expirations = data.get("credit_expirations")
    if isinstance(expirations, list) and expirations:
        block.text("  " + block.style("Expirations:", fg="cyan"))
        for entry in expirations:
            if isinstance(entry, Mapping):
                when = str(entry.get("expires_at") or "?")[:10]
                block.text(f"    {format_number(entry.get('balance', 0))} credits on {when}")
    return str(block)


def organization_details(data: Mapping[str, Any], colored: bool = False) -> str:
    block = Block(colored)
    block.separator("Organization Details")
    block.line("Name", block.style(str(data.get("name") or ""), bold=True), indent=2)
    block.line("ID", data.get("uid") or data.get("id"), indent=2)
    block.line("Created", str(data.get("created_at") or "")[:10], indent=2)
    members = _get(data, "member_counts", "total")
    if members is not None:
        block.line("Members", format_number(members), indent=2)
    preferences = data.get("preferences")
    if isinstance(preferences, Mapping):
        for key, value in sorted(preferences.items()):
            block.line(key.replace("_", " ").title(), value, indent=2)
    return str(block)


def _table(
    block: Block,
    headers: list[str],
    rows: list[list[str]],
    right_aligned: Iterable[int] = (),
) -> None:
    widths = [max([len(h), *(len(r[i]) for r in rows)]) for i, h in enumerate(headers)]
    right = set(right_aligned)

    def cells(values: list[str]) -> list[str]:
        return [
            value.rjust(widths[i]) if i in right else value.ljust(widths[i])
            for i, value in enumerate(values)
        ]

    block.text("  " + block.style("  ".join(cells(headers)).rstrip(), bold=True))
    for row in rows:
        block.text("  " + "  ".join(cells(row)).rstrip())


def aggregate_buckets(
    buckets: Iterable[Mapping[str, Any]],
    query: str,
    field: str,
    count_by_level: str | None = None,
    filter_by_query: bool = False,
    colored: bool = False,
) -> str:
    """Render aggregation buckets as a count/value table."""
    buckets = list(buckets)
    block = Block(colored)
    block.separator("Aggregation Results")
    level = count_by_level or '""'
    block.text(f"query: {query} | count by: {level} | filtered: {str(filter_by_query).lower()}")
    block.blank()
    if not buckets:
        block.text("No results found.")
        return str(block)
    rows = [[format_number(b.get("count", 0)), str(b.get("key", ""))] for b in buckets]
    _table(block, ["Count", field], rows, right_aligned=(0,))
    return str(block)


def _member_name(member: Mapping[str, Any]) -> str:
    parts = [str(member[k]) for k in ("first_name", "last_name") if member.get(k)]
    return " ".join(parts) or "-"


def _login(value: Any) -> str:
    # 2024-05-01T12:30:00Z -> 2024-05-01 12:30
    return str(value)[:16].replace("T", " ") if value else "Never"


def organization_members(members: Iterable[Mapping[str, Any]], colored: bool = False) -> str:
    """Render organization members as a table."""
    members = list(members)
    block = Block(colored)
    if not members:
        block.text("No members found.")
        return str(block)
    block.separator(f"Organization Members ({len(members)})")
    rows = [
        [
            str(m.get("email") or "-"),
            _member_name(m),
            ", ".join(str(r) for r in m.get("roles") or []) or "-",
            _login(m.get("first_login_time")),
            _login(m.get("latest_login_time")),
        ]
        for m in members
    ]
    _table(block, ["Email", "Name", "Roles", "First Login", "Last Login"], rows)
    return str(block)
