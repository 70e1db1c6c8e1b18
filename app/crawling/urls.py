"""
URL canonicalization and crawl-scope checks.

All functions here are pure; they are shared by the initializer, the
continuation worker and the sitemap loader.
"""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from app.crawling.types import PolicyRule

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "gclid",
        "fbclid",
        "gclsrc",
        "dclid",
        "msclkid",
        "_ga",
        "mc_cid",
        "mc_eid",
    }
)

SKIP_EXTENSIONS = (
    ".pdf",
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".svg",
    ".webp",
    ".ico",
    ".css",
    ".js",
    ".json",
    ".xml",
    ".zip",
    ".tar",
    ".gz",
    ".mp3",
    ".mp4",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
)

# Second-level labels that form multi-part public suffixes (co.uk, com.au, ...).
_SECOND_LEVEL_SUFFIXES = frozenset({"co", "com", "org", "net", "edu", "gov"})

_DEFAULT_PORTS = {"http": 80, "https": 443}
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def normalize_url(raw_url: str) -> str | None:
    """
    Return the deduplication key for `raw_url`, or None when it cannot be crawled.

    Drops the fragment and tracking parameters, strips trailing slashes on
    non-root paths and lower-cases the result. Applying it twice yields the
    same value.
    """

    if not isinstance(raw_url, str):
        return None
    try:
        parts = urlsplit(raw_url.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in _DEFAULT_PORTS or not host:
        return None

    path = quote(parts.path or "/", safe=_PATH_SAFE)
    if path != "/":
        path = path.rstrip("/") or "/"
    if path.lower().endswith(SKIP_EXTENSIONS):
        return None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    params = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
    ]
    query = urlencode(params)

    return urlunsplit((scheme, netloc, path, query, "")).lower()


def normalize_domain(domain: str) -> str:
    """
    Turn user input like `https://www.Example.com/about` into `https://example.com`.
    """

    value = domain.strip().lower()
    for prefix in ("https://", "http://"):
        if value.startswith(prefix):
            value = value[len(prefix) :]
            break
    if value.startswith("www."):
        value = value[4:]
    host = value.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    if not host or " " in host or "." not in host:
        raise ValueError(f"Invalid domain: {domain!r}")
    return f"https://{host}"


def url_host(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def url_path(url: str) -> str:
    try:
        return urlsplit(url).path or "/"
    except ValueError:
        return "/"


def registrable_domain(hostname: str) -> str:
    """
    Reduce a hostname to its registrable unit, e.g. `blog.example.co.uk` → `example.co.uk`.
    """

    labels = hostname.lower().strip(".").split(".")
    if len(labels) <= 2:
        return ".".join(labels)
    if labels[-2] in _SECOND_LEVEL_SUFFIXES:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _strip_www(hostname: str) -> str:
    return hostname[4:] if hostname.startswith("www.") else hostname


def in_scope(url_hostname: str, audit_hostname: str, allow_subdomains: bool) -> bool:
    """
    Return whether `url_hostname` belongs to the audited site.
    """

    candidate = url_hostname.lower()
    audited = audit_hostname.lower()
    if not candidate:
        return False
    if allow_subdomains:
        return registrable_domain(candidate) == registrable_domain(audited)
    return _strip_www(candidate) == _strip_www(audited)


def allowed_by_policy(path: str, rules: Sequence[PolicyRule]) -> bool:
    """
    First rule whose prefix matches the lower-cased path decides; default allow.
    """

    normalized = path.lower()
    for rule in rules:
        if normalized.startswith(rule.path_prefix):
            return rule.allow
    return True


def admissible(url: str, audit_hostname: str, allow_subdomains: bool, rules: Sequence[PolicyRule]) -> bool:
    """
    Scope and policy check for an already-normalized URL.
    """

    return in_scope(url_host(url), audit_hostname, allow_subdomains) and allowed_by_policy(
        url_path(url), rules
    )
