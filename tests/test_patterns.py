"""Tests for match pattern parsing and regex compilation."""

import re

import pytest

from linkscope.errors import InvalidPatternError
from linkscope.models import ParsedPattern
from linkscope.patterns import (
    combine_regex_strings,
    compile_domains,
    compile_pattern,
    compile_patterns,
    domains_to_match_patterns,
    escape_regex,
    parse_pattern,
)


def _matches(source: str, url: str) -> bool:
    return re.fullmatch(source, url, re.IGNORECASE) is not None


@pytest.mark.unit
class TestParsePattern:
    """Parsing match pattern strings."""

    def test_all_urls(self):
        assert parse_pattern("<all_urls>") == ParsedPattern(all_urls=True)

    def test_scheme_host_path(self):
        parsed = parse_pattern("https://mozilla.org/path/*")
        assert parsed.all_urls is False
        assert parsed.scheme == "https"
        assert parsed.host == "mozilla.org"
        assert parsed.match_subdomains is False
        assert parsed.path == "/path/*"

    def test_subdomain_wildcard_is_stripped(self):
        parsed = parse_pattern("http://*.google.com/*")
        assert parsed.host == "google.com"
        assert parsed.match_subdomains is True

    def test_wildcard_host(self):
        parsed = parse_pattern("*://*/*")
        assert parsed.scheme == "*"
        assert parsed.host == "*"
        assert parsed.match_subdomains is False

    def test_file_pattern_has_empty_host(self):
        parsed = parse_pattern("file:///foo*")
        assert parsed.scheme == "file"
        assert parsed.host == ""
        assert parsed.path == "/foo*"

    def test_data_pattern_has_no_host(self):
        parsed = parse_pattern("data:text/plain,*")
        assert parsed.scheme == "data"
        assert parsed.host == ""
        assert parsed.path == "text/plain,*"

    def test_ipv6_host(self):
        assert parse_pattern("http://[::1]/").host == "[::1]"

    def test_uppercase_scheme_accepted(self):
        assert parse_pattern("HTTP://mozilla.org/").scheme == "http"

    @pytest.mark.parametrize(
        "pattern",
        [
            "",
            "http://mozilla.org",
            "gopher://wuarchive.wustl.edu/",
            "http:/mozilla.org/",
            "http:///a.html",
            "http:*",
            "unknown-scheme:*",
            "http://*.*/",
            "http://mo*zilla.org/",
            "data:",
            "<all_urls>/",
        ],
    )
    def test_invalid_patterns(self, pattern):
        with pytest.raises(InvalidPatternError):
            parse_pattern(pattern)

    def test_error_carries_pattern(self):
        with pytest.raises(InvalidPatternError) as info:
            parse_pattern("gopher://host/")
        assert info.value.pattern == "gopher://host/"
        assert isinstance(info.value, ValueError)


@pytest.mark.unit
class TestEscapeRegex:
    def test_metacharacters_escaped(self):
        assert escape_regex("a.b*c?") == r"a\.b\*c\?"
        assert escape_regex("[x](y){z}") == r"\[x\]\(y\)\{z\}"

    def test_escaped_text_matches_itself(self):
        text = "example.com/$path^+|\\"
        assert re.fullmatch(escape_regex(text), text)

    def test_plain_text_unchanged(self):
        assert escape_regex("mozilla-org/abc") == "mozilla-org/abc"


@pytest.mark.unit
class TestCompilePattern:
    """Regex fragments for single parsed patterns."""

    def test_wildcard_scheme(self):
        source = compile_pattern(parse_pattern("*://mozilla.org/"))
        assert source.startswith("(?:https?|wss?)://")

    def test_root_path_optional_slash(self):
        source = compile_pattern(parse_pattern("http://mozilla.org/"))
        assert _matches(source, "http://mozilla.org")
        assert _matches(source, "http://mozilla.org/")
        assert not _matches(source, "http://mozilla.org/abc")

    def test_wildcard_path(self):
        source = compile_pattern(parse_pattern("http://mozilla.org/*"))
        assert _matches(source, "http://mozilla.org")
        assert _matches(source, "http://mozilla.org/abc/def")

    def test_query_and_fragment_accepted(self):
        source = compile_pattern(parse_pattern("http://mozilla.org/base"))
        assert _matches(source, "http://mozilla.org/base?x=1")
        assert _matches(source, "http://mozilla.org/base#frag")
        assert _matches(source, "http://mozilla.org/base?x=1#frag")

    def test_port_accepted(self):
        source = compile_pattern(parse_pattern("http://mozilla.org/"))
        assert _matches(source, "http://mozilla.org:8080")
        assert not _matches(source, "http://mozilla.org:port/")

    def test_file_scheme_has_no_port(self):
        source = compile_pattern(parse_pattern("file:///foo*"))
        assert "(?::[0-9]+)?" not in source

    def test_literal_host_is_escaped(self):
        source = compile_pattern(parse_pattern("http://mozilla.org/"))
        assert not _matches(source, "http://mozillaXorg/")


@pytest.mark.unit
class TestCombine:
    def test_anchored_alternation(self):
        assert combine_regex_strings(["a", "b"]) == "^(?:(?:a)|(?:b))$"

    def test_empty_matches_nothing(self):
        source = combine_regex_strings([])
        assert not _matches(source, "")
        assert not _matches(source, "http://mozilla.org/")

    def test_invalid_pattern_fails_whole_set(self):
        with pytest.raises(InvalidPatternError):
            compile_patterns(["http://mozilla.org/", "gopher://host/"])

    def test_compile_is_deterministic(self):
        patterns = ["*://mozilla.org/*", "http://*.google.com/*", "<all_urls>"]
        assert compile_patterns(patterns) == compile_patterns(patterns)


@pytest.mark.unit
class TestDomains:
    """The bare-domain fast path."""

    DOMAINS = ["nytimes.com", "bbc.co.uk", "example.org"]

    def test_domains_to_match_patterns(self):
        assert domains_to_match_patterns(["a.com"]) == ["*://*.a.com/*"]
        assert domains_to_match_patterns(["a.com"], match_subdomains=False) == ["*://a.com/*"]

    def test_matches_subdomains_of_every_domain(self):
        source = compile_domains(self.DOMAINS)
        for domain in self.DOMAINS:
            assert _matches(source, f"https://sub.{domain}/p")
            assert _matches(source, f"http://{domain}")

    def test_rejects_domain_not_in_list(self):
        source = compile_domains(self.DOMAINS)
        assert not _matches(source, "https://notindomainlist.example/")
        assert not _matches(source, "https://evilnytimes.com/")

    def test_without_subdomains(self):
        source = compile_domains(self.DOMAINS, match_subdomains=False)
        assert _matches(source, "https://nytimes.com/section")
        assert not _matches(source, "https://www.nytimes.com/section")

    def test_case_insensitive(self):
        source = compile_domains(self.DOMAINS)
        assert _matches(source, "HTTPS://WWW.NYTIMES.COM/A")

    def test_equivalent_to_patterns(self):
        assert compile_domains(["a.com"]) == compile_patterns(["*://*.a.com/*"])
