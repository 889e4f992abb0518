"""Tests for product_validator/identifiers.py"""

import pytest

from product_validator.identifiers import parse_purl, render_identifier


class TestParsePurl:
    def test_full(self):
        parsed, err = parse_purl("pkg:maven/org.apache.tomcat/tomcat@10.1.0?type=jar#sub")
        assert err is None
        assert parsed == {
            "type": "maven",
            "namespace": "org.apache.tomcat",
            "name": "tomcat",
            "version": "10.1.0",
        }

    def test_scoped_npm_name(self):
        parsed, err = parse_purl("pkg:npm/%40angular/core")
        assert parsed["namespace"] == "@angular"
        assert parsed["name"] == "core"

    def test_missing_scheme(self):
        parsed, err = parse_purl("github/python/cpython")
        assert parsed is None
        assert "pkg:" in err

    def test_missing_name(self):
        parsed, err = parse_purl("pkg:pypi")
        assert parsed is None
        assert err


class TestRenderIdentifier:
    @pytest.mark.parametrize("identifier,url", [
        ({"purl": "pkg:github/python/cpython"}, "https://github.com/python/cpython"),
        ({"purl": "pkg:pypi/django@5.0"}, "https://pypi.org/project/django"),
        ({"purl": "pkg:npm/%40angular/core"}, "https://www.npmjs.com/package/@angular/core"),
        ({"purl": "pkg:npm/react"}, "https://www.npmjs.com/package/react"),
        ({"purl": "pkg:docker/library/nginx"}, "https://hub.docker.com/r/library/nginx"),
        ({"purl": "pkg:docker/nginx"}, "https://hub.docker.com/_/nginx"),
        ({"purl": "pkg:cargo/tokio"}, "https://crates.io/crates/tokio"),
        ({"repology": "python"}, "https://repology.org/project/python"),
    ])
    def test_renders(self, identifier, url):
        assert render_identifier(identifier) == (url, None)

    def test_cpe(self):
        url, err = render_identifier({"cpe": "cpe:2.3:a:python:python"})
        assert err is None
        assert url.startswith("https://nvd.nist.gov/")
        assert "cpe%3A2.3%3Aa%3Apython%3Apython" in url

    @pytest.mark.parametrize("identifier", [
        {"purl": "pkg:github/cpython"},
        {"purl": "pkg:unknowntype/x"},
        {"purl": "github/python/cpython"},
        {"cpe": "python"},
        {"repology": "two words"},
        {"repology": ""},
        {"purl": 12},
        {"swid": "x"},
        {"purl": "pkg:pypi/django", "repology": "django"},
        {},
        "pkg:pypi/django",
        None,
    ])
    def test_rejects(self, identifier):
        url, err = render_identifier(identifier)
        assert url is None
        assert err
