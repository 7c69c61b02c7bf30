"""
Blocklists for the edge request filter.

Kept as data so they can be extended and tested independently of the
filter logic. Patterns are matched with ``re.search``.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Tuple

# Largest request body accepted, in bytes (1 MiB)
MAX_CONTENT_LENGTH = 1048576

# Commonly targeted by bots looking for vulnerabilities
BLOCKED_EXTENSIONS = (
    ".php", ".asp", ".aspx", ".jsp", ".cgi", ".pl",
    ".exe", ".dll",
    ".env", ".git", ".bak", ".sql", ".config", ".ini", ".log",
    ".sh", ".bash", ".zsh",
    ".py", ".rb",
    ".jar", ".war", ".class",
)

_BLOCKED_PATH_SOURCES = (
    # WordPress
    r"/wp-admin", r"/wp-content", r"/wp-includes", r"/wp-login", r"/wp-config",
    r"/wp-json", r"/xmlrpc", r"/wp-cron", r"/wp-trackback", r"/wp-comments", r"/wordpress",
    # Other CMS and hosting panels
    r"/administrator", r"/joomla", r"/drupal", r"/magento", r"/phpmyadmin",
    r"/cpanel", r"/plesk", r"/webmail", r"/roundcube", r"/squirrelmail",
    # Web shells
    r"/shell", r"/c99", r"/r57", r"/alfa", r"/b374k", r"/weevely", r"/wso",
    # VCS and config files
    r"\.git/", r"\.svn/", r"\.hg/", r"\.env$", r"\.env\.", r"\.htaccess", r"\.htpasswd",
    r"\.npmrc", r"\.dockerenv", r"/\.well-known/(?!acme-challenge)",
    # Backups
    r"\.bak$", r"\.backup$", r"\.old$", r"\.orig$", r"\.save$", r"\.swp$",
    # Database dumps
    r"\.sql$", r"dump\.", r"backup\.", r"database\.", r"db\.",
    # System paths
    r"/cgi-bin/", r"/scripts/", r"/bin/", r"/etc/passwd", r"/proc/", r"/var/log", r"/tmp/",
    # Probe endpoints
    r"/eval", r"/exec", r"/system", r"/passthru", r"/actuator", r"/console", r"/debug",
    r"/trace", r"/manager", r"/api/v[0-9]+/admin",
    # Known vulnerable software
    r"/solr", r"/jenkins", r"/struts", r"/log4j", r"/vendor/", r"/node_modules/", r"/bower_components/",
)

BLOCKED_PATH_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in _BLOCKED_PATH_SOURCES)
# Editor backup suffix, matched case-sensitively
BLOCKED_PATH_PATTERNS += (re.compile(r"~$"),)

_BLOCKED_QUERY_SOURCES = (
    r"(%00|\\x00)",  # null byte
    r"<script",
    r"javascript:", r"vbscript:", r"data:", r"base64,",
    r"union\s+select", r"select\s+.*\s+from", r"insert\s+into", r"drop\s+table",
    r"delete\s+from", r"update\s+.*\s+set", r";.*--",
    r"\.\./", r"%2e%2e",  # traversal
    r"\$\{.*\}", r"\{\{.*\}\}",  # template injection
    r"\$poison",
    r"eval\s*\(", r"exec\s*\(", r"cmd=", r"system\s*\(",
    r"passwd", r"etc/shadow", r"phpinfo",
    r"file://", r"gopher://", r"dict://",
)

BLOCKED_QUERY_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in _BLOCKED_QUERY_SOURCES)

_SCANNER_USER_AGENTS = (
    "sqlmap", "nikto", "nmap", "masscan", "zmeu", "morfeus", "zgrab", "gobuster",
    "dirbuster", "wpscan", "nessus", "openvas", "nuclei", "acunetix", "burpsuite",
    "havij", "w3af", "arachni", "qualys",
)

SCANNER_USER_AGENT_PATTERNS = tuple(re.compile(ua, re.IGNORECASE) for ua in _SCANNER_USER_AGENTS)

# Subset of scanners that are blocked outright; the rest are only logged
MALICIOUS_USER_AGENT_PATTERN = re.compile(
    r"sqlmap|nikto|zmeu|morfeus|zgrab|wpscan|acunetix|havij|w3af", re.IGNORECASE
)

# Host/URL override headers
SUSPICIOUS_HEADERS = frozenset({"x-forwarded-host", "x-original-url", "x-rewrite-url"})

ADMIN_PATH_PREFIX = "/api/admin/"
ADMIN_ALLOWED_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "POST", "PUT", "DELETE"})
DEFAULT_ALLOWED_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "POST"})

ALLOWED_POST_PREFIXES = ("/api/send-email", "/api/admin/", "/.netlify/functions/")


@dataclass(frozen=True)
class EdgeRules:
    """A complete rule set for the edge filter."""
    max_content_length: int = MAX_CONTENT_LENGTH
    blocked_extensions: Tuple[str, ...] = BLOCKED_EXTENSIONS
    blocked_path_patterns: Tuple[re.Pattern, ...] = BLOCKED_PATH_PATTERNS
    blocked_query_patterns: Tuple[re.Pattern, ...] = BLOCKED_QUERY_PATTERNS
    scanner_user_agent_patterns: Tuple[re.Pattern, ...] = SCANNER_USER_AGENT_PATTERNS
    malicious_user_agent_pattern: re.Pattern = MALICIOUS_USER_AGENT_PATTERN
    suspicious_headers: FrozenSet[str] = SUSPICIOUS_HEADERS
    admin_path_prefix: str = ADMIN_PATH_PREFIX
    admin_allowed_methods: FrozenSet[str] = ADMIN_ALLOWED_METHODS
    default_allowed_methods: FrozenSet[str] = DEFAULT_ALLOWED_METHODS
    allowed_post_prefixes: Tuple[str, ...] = ALLOWED_POST_PREFIXES


DEFAULT_RULES = EdgeRules()
