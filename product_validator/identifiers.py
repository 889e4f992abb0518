"""Render an ``identifiers`` entry to the URL it designates.

An entry is a one-key mapping, for example::

    - purl: pkg:github/python/cpython
    - cpe: cpe:2.3:a:python:python
    - repology: python

``render_identifier`` returns ``(url, None)`` on success and ``(None, reason)``
when the entry cannot be rendered. It does not raise.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

CPE_SEARCH_URL = "https://nvd.nist.gov/products/cpe/search/results?namingFormat=2.3&keyword={cpe}"
REPOLOGY_URL = "https://repology.org/project/{name}"

# purl type -> URL template; types listed in PURL_NEEDS_NAMESPACE need a namespace
PURL_URL_TEMPLATES = {
    "bitbucket": "https://bitbucket.org/{namespace}/{name}",
    "cargo": "https://crates.io/crates/{name}",
    "composer": "https://packagist.org/packages/{namespace}/{name}",
    "docker": "https://hub.docker.com/r/{namespace}/{name}",
    "gem": "https://rubygems.org/gems/{name}",
    "github": "https://github.com/{namespace}/{name}",
    "gitlab": "https://gitlab.com/{namespace}/{name}",
    "golang": "https://pkg.go.dev/{namespace}/{name}",
    "hex": "https://hex.pm/packages/{name}",
    "maven": "https://central.sonatype.com/artifact/{namespace}/{name}",
    "npm": "https://www.npmjs.com/package/{qualified_name}",
    "nuget": "https://www.nuget.org/packages/{name}",
    "pypi": "https://pypi.org/project/{name}",
}
PURL_NEEDS_NAMESPACE = {"bitbucket", "composer", "github", "gitlab", "golang", "maven"}


def parse_purl(purl: str) -> tuple[dict | None, str | None]:
    """Split a package URL into type, namespace, name and version.

    Qualifiers (``?...``) and subpath (``#...``) are accepted and ignored.
    """
    if not purl.startswith("pkg:"):
        return None, f"purl '{purl}' must start with 'pkg:'"

    rest = purl[len("pkg:"):].lstrip("/")
    rest = rest.split("#", 1)[0].split("?", 1)[0]
    parts = [p for p in rest.split("/") if p]
    if len(parts) < 2:
        return None, f"purl '{purl}' must have a type and a name"

    purl_type = parts[0].lower()
    last = parts[-1]
    version = None
    if "@" in last[1:]:
        last, version = last.rsplit("@", 1)
    namespace = "/".join(unquote(p) for p in parts[1:-1]) or None

    return {
        "type": purl_type,
        "namespace": namespace,
        "name": unquote(last),
        "version": unquote(version) if version else None,
    }, None


def render_purl(purl: str) -> tuple[str | None, str | None]:
    parsed, err = parse_purl(purl)
    if err:
        return None, err

    purl_type = parsed["type"]
    template = PURL_URL_TEMPLATES.get(purl_type)
    if template is None:
        return None, f"unsupported purl type '{purl_type}' in '{purl}'"

    namespace = parsed["namespace"]
    name = parsed["name"]
    if purl_type in PURL_NEEDS_NAMESPACE and not namespace:
        return None, f"purl '{purl}' must have a namespace"

    if purl_type == "docker" and not namespace:
        return f"https://hub.docker.com/_/{quote(name)}", None

    qualified_name = f"{namespace}/{name}" if namespace else name
    return template.format(namespace=namespace, name=name, qualified_name=qualified_name), None


def render_cpe(cpe: str) -> tuple[str | None, str | None]:
    if not (cpe.startswith("cpe:2.3:") or cpe.startswith("cpe:/")):
        return None, f"cpe '{cpe}' must start with 'cpe:2.3:' or 'cpe:/'"
    return CPE_SEARCH_URL.format(cpe=quote(cpe, safe="")), None


def render_repology(name: str) -> tuple[str | None, str | None]:
    if not name or "/" in name or " " in name:
        return None, f"invalid repology project name '{name}'"
    return REPOLOGY_URL.format(name=name), None


RENDERERS = {
    "purl": render_purl,
    "cpe": render_cpe,
    "repology": render_repology,
}


def render_identifier(identifier: object) -> tuple[str | None, str | None]:
    if not isinstance(identifier, dict) or len(identifier) != 1:
        return None, f"expecting a mapping with a single key among {', '.join(RENDERERS)}"

    (kind, value), = identifier.items()
    renderer = RENDERERS.get(kind)
    if renderer is None:
        return None, f"unknown identifier type '{kind}', expecting one of {', '.join(RENDERERS)}"
    if not isinstance(value, str):
        return None, f"expecting a string value for '{kind}', got {type(value).__name__}"
    return renderer(value)
