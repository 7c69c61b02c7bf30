"""
Tests for the edge request filter: rule order, each rule in isolation, and
the middleware wired into the app.
"""
import pytest

from scalerebel.security.edge_filter import evaluate_request, has_suspicious_query
from scalerebel.security.edge_rules import BLOCKED_EXTENSIONS, DEFAULT_RULES, EdgeRules

BROWSER_UA = {"user-agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 Safari/605.1.15"}


def check(method="GET", path="/", query="", headers=None, rules=DEFAULT_RULES):
    return evaluate_request(method, path, query, headers if headers is not None else BROWSER_UA, rules)


def test_plain_page_request_is_allowed():
    decision = check("GET", "/portfolio/")
    assert decision.allowed
    assert decision.status is None


@pytest.mark.parametrize("ext", BLOCKED_EXTENSIONS)
def test_blocked_extension_is_404_for_any_method(ext):
    for method in ("GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "TRACE"):
        decision = check(method, f"/some/file{ext}")
        assert not decision.allowed
        assert decision.status == 404
        assert decision.message == "Not Found"


def test_blocked_extension_is_case_insensitive():
    assert check("GET", "/INDEX.PHP").status == 404


@pytest.mark.parametrize("path", [
    "/wp-admin/",
    "/wp-login",
    "/blog/wp-content/uploads/x",
    "/phpmyadmin/index",
    "/.git/config",
    "/.env.production",
    "/site.backup",
    "/styles.css~",
    "/dump.tar.gz",
    "/cgi-bin/test",
    "/actuator/health",
    "/api/v2/admin/users",
    "/node_modules/lodash/package.json",
    "/.well-known/security.txt",
])
def test_blocked_paths_are_disguised_as_not_found(path):
    decision = check("GET", path)
    assert decision.status == 404
    assert decision.reason == "path pattern"


def test_acme_challenge_is_not_blocked():
    assert check("GET", "/.well-known/acme-challenge/abc123").allowed


@pytest.mark.parametrize("query", [
    "id=1%00",
    "q=<script>alert(1)</script>",
    "next=javascript:alert(1)",
    "id=1 UNION SELECT password FROM users",
    "id=1%20union%20select%201",
    "file=../../etc/hosts",
    "x=%2e%2e%2fetc",
    "q=${jndi:ldap://evil}",
    "q={{7*7}}",
    "cmd=ls",
    "u=file:///etc/hosts",
])
def test_suspicious_query_is_400(query):
    decision = check("GET", "/", query)
    assert decision.status == 400
    assert decision.reason == "suspicious query"


def test_ordinary_query_passes():
    assert not has_suspicious_query("w=400&q=75&url=https%3A%2F%2Fwww.instagram.com%2Fp%2Fabc%2F")
    assert check("GET", "/gallery/", "page=2&sort=newest").allowed


@pytest.mark.parametrize("header", ["x-forwarded-host", "X-Original-URL", "x-rewrite-url"])
def test_override_headers_are_400(header):
    headers = dict(BROWSER_UA)
    headers[header] = "evil.example"
    decision = check("GET", "/", headers=headers)
    assert decision.status == 400
    assert decision.reason == "suspicious headers"


@pytest.mark.parametrize("ua", ["sqlmap/1.7.2#stable", "Mozilla/5.00 (Nikto/2.1.6)", "WPScan v3.8", "zgrab/0.x"])
def test_known_malicious_scanners_are_forbidden(ua):
    decision = check("GET", "/", headers={"user-agent": ua})
    assert decision.status == 403
    assert decision.message == "Forbidden"


@pytest.mark.parametrize("ua", ["", "Mozilla/5.0 (compatible; Nmap Scripting Engine)", "masscan/1.3", "Nuclei - Open-source project"])
def test_other_scanner_agents_and_empty_agent_are_logged_but_allowed(ua):
    assert check("GET", "/", headers={"user-agent": ua}).allowed


def test_missing_user_agent_header_is_allowed():
    assert check("GET", "/", headers={}).allowed


def test_admin_paths_allow_put_and_delete():
    assert check("PUT", "/api/admin/clients").allowed
    assert check("DELETE", "/api/admin/clients").allowed


@pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
def test_non_admin_paths_reject_write_methods(method):
    decision = check(method, "/api/send-email")
    assert decision.status == 405
    assert decision.reason == "method"


def test_patch_is_rejected_on_admin_paths():
    assert check("PATCH", "/api/admin/clients").status == 405


@pytest.mark.parametrize("path", ["/api/send-email", "/api/admin/otp/send", "/.netlify/functions/send-email"])
def test_post_allowed_on_allowlisted_prefixes(path):
    assert check("POST", path).allowed


@pytest.mark.parametrize("path", ["/", "/contact/", "/api/other"])
def test_post_rejected_elsewhere(path):
    decision = check("POST", path)
    assert decision.status == 405
    assert decision.reason == "post path"


def test_oversized_body_is_413():
    headers = dict(BROWSER_UA, **{"content-length": str(1048577)})
    assert check("POST", "/api/send-email", headers=headers).status == 413


def test_body_at_ceiling_is_allowed():
    headers = dict(BROWSER_UA, **{"content-length": str(1048576)})
    assert check("POST", "/api/send-email", headers=headers).allowed


def test_non_numeric_content_length_is_ignored():
    headers = dict(BROWSER_UA, **{"content-length": "lots"})
    assert check("POST", "/api/send-email", headers=headers).allowed


def test_first_matching_rule_wins():
    # Oversized beats extension
    headers = {"user-agent": "sqlmap", "content-length": "5000000", "x-original-url": "/"}
    assert check("GET", "/x.php", "cmd=1", headers=headers).status == 413
    # Extension beats path pattern, query, headers and user agent
    headers = {"user-agent": "sqlmap", "x-original-url": "/"}
    assert check("GET", "/wp-login.php", "cmd=1", headers=headers).reason == "extension"
    # Query beats suspicious headers and user agent
    assert check("GET", "/", "cmd=1", headers=headers).reason == "suspicious query"
    # Headers beat user agent
    assert check("GET", "/", "", headers=headers).reason == "suspicious headers"
    # User agent beats method policy
    assert check("PATCH", "/", "", headers={"user-agent": "sqlmap"}).status == 403


def test_rules_can_be_extended_without_touching_filter_logic():
    rules = EdgeRules(blocked_extensions=DEFAULT_RULES.blocked_extensions + (".tar",))
    assert check("GET", "/archive.tar", rules=rules).status == 404
    assert check("GET", "/archive.tar").allowed


class TestMiddleware:
    def test_blocked_path_gets_plain_not_found(self, client):
        response = client.get("/wp-admin/")
        assert response.status_code == 404
        assert response.text == "Not Found"

    def test_blocked_extension_never_reaches_routing(self, client):
        response = client.delete("/api/admin/backup.sql")
        assert response.status_code == 404

    def test_scanner_user_agent_is_forbidden(self, client):
        response = client.get("/health", headers={"user-agent": "sqlmap/1.7"})
        assert response.status_code == 403

    def test_suspicious_header_is_rejected(self, client):
        response = client.get("/health", headers={"x-original-url": "/admin"})
        assert response.status_code == 400

    def test_suspicious_query_is_rejected(self, client):
        response = client.get("/health?cmd=ls")
        assert response.status_code == 400

    def test_post_outside_allowlist_is_rejected(self, client):
        response = client.post("/health")
        assert response.status_code == 405
        assert response.text == "Method Not Allowed"

    def test_clean_request_passes_through(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
