"""
Edge request filter.

Rejects obviously malicious or out-of-policy requests before they reach a
route handler. ``evaluate_request`` is a pure function over the request
line and headers; rules are checked in a fixed order and the first match
decides. ``EdgeFilterMiddleware`` applies it to every request.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import unquote

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from scalerebel.security.edge_rules import EdgeRules, DEFAULT_RULES


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of evaluating one request."""
    allowed: bool
    status: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None


ALLOW = FilterDecision(allowed=True)


def _block(status: int, reason: str, message: str) -> FilterDecision:
    return FilterDecision(allowed=False, status=status, reason=reason, message=message)


def is_oversized(content_length: Optional[str], rules: EdgeRules = DEFAULT_RULES) -> bool:
    if not content_length:
        return False
    try:
        return int(content_length.strip()) > rules.max_content_length
    except ValueError:
        return False


def is_blocked_extension(path: str, rules: EdgeRules = DEFAULT_RULES) -> bool:
    lower_path = path.lower()
    return any(lower_path.endswith(ext) for ext in rules.blocked_extensions)


def is_blocked_path(path: str, rules: EdgeRules = DEFAULT_RULES) -> bool:
    return any(pattern.search(path) for pattern in rules.blocked_path_patterns)


def has_suspicious_query(query: str, rules: EdgeRules = DEFAULT_RULES) -> bool:
    """Check the raw query string and its percent-decoded form."""
    if not query:
        return False
    candidates = {query, unquote(query.replace("+", " "))}
    return any(
        pattern.search(candidate)
        for candidate in candidates
        for pattern in rules.blocked_query_patterns
    )


def has_suspicious_headers(headers: Mapping[str, str], rules: EdgeRules = DEFAULT_RULES) -> bool:
    return any(name in headers for name in rules.suspicious_headers)


def is_suspicious_user_agent(user_agent: Optional[str], rules: EdgeRules = DEFAULT_RULES) -> bool:
    if not user_agent:
        return True
    return any(pattern.search(user_agent) for pattern in rules.scanner_user_agent_patterns)


def is_malicious_user_agent(user_agent: Optional[str], rules: EdgeRules = DEFAULT_RULES) -> bool:
    return bool(user_agent) and rules.malicious_user_agent_pattern.search(user_agent) is not None


def allowed_methods_for(path: str, rules: EdgeRules = DEFAULT_RULES):
    if path.startswith(rules.admin_path_prefix):
        return rules.admin_allowed_methods
    return rules.default_allowed_methods


def evaluate_request(
    method: str,
    path: str,
    query: str = "",
    headers: Optional[Mapping[str, str]] = None,
    rules: EdgeRules = DEFAULT_RULES
) -> FilterDecision:
    """
    Decide whether a request may proceed.

    Args:
        method: HTTP method
        path: URL path, without the query string
        query: Raw query string, with or without the leading "?"
        headers: Request headers; names are matched case-insensitively
        rules: Rule set to apply

    Returns:
        FilterDecision; when blocked, ``status`` and ``message`` describe the
        response to send and ``reason`` names the rule that matched
    """
    headers = {k.lower(): v for k, v in (headers or {}).items()}
    method = method.upper()

    if is_oversized(headers.get("content-length"), rules):
        return _block(413, "oversized", "Payload Too Large")

    # Blocked files are reported as missing so scanners cannot tell they were filtered
    if is_blocked_extension(path, rules):
        return _block(404, "extension", "Not Found")

    if is_blocked_path(path, rules):
        return _block(404, "path pattern", "Not Found")

    if has_suspicious_query(query, rules):
        return _block(400, "suspicious query", "Bad Request")

    if has_suspicious_headers(headers, rules):
        return _block(400, "suspicious headers", "Bad Request")

    user_agent = headers.get("user-agent")
    if is_suspicious_user_agent(user_agent, rules):
        if is_malicious_user_agent(user_agent, rules):
            return _block(403, "malicious user agent", "Forbidden")
        # Everything else is logged but let through to limit false positives
        logging.info(f"Suspicious user agent detected: {user_agent or '(empty)'} for {path}")

    if method not in allowed_methods_for(path, rules):
        return _block(405, "method", "Method Not Allowed")

    if method == "POST" and not any(path.startswith(prefix) for prefix in rules.allowed_post_prefixes):
        return _block(405, "post path", "Method Not Allowed")

    return ALLOW


class EdgeFilterMiddleware(BaseHTTPMiddleware):
    """Runs ``evaluate_request`` ahead of routing and short-circuits blocked requests."""

    def __init__(self, app, rules: EdgeRules = DEFAULT_RULES, enabled: bool = True):
        super().__init__(app)
        self.rules = rules
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        path = request.url.path
        query = request.url.query
        decision = evaluate_request(
            request.method,
            path,
            query,
            request.headers,
            self.rules
        )

        if decision.allowed:
            return await call_next(request)

        target = f"{path}?{query}" if query else path
        logging.warning(f"Blocked request ({decision.reason}): {request.method} {target}")
        return PlainTextResponse(decision.message, status_code=decision.status)
