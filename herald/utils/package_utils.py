"""Package normalization utilities.

Pure helpers shared by the watcher and the filters:
- Repository URL cleanup (git+ssh, git://, scp-style, shortcuts)
- Best-effort homepage resolution with a registry-website fallback
- Case-insensitive keyword matching
- Conversion of raw registry documents into NormalizedPackage

None of these perform I/O.
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Union

from herald.models.package import NormalizedPackage

REGISTRY_WEBSITE = "https://npmjs.org/package/"

# Short host aliases accepted in the "repository" field ("github:user/repo")
_SHORTCUT_HOSTS = {
    "github": "github.com",
    "gitlab": "gitlab.com",
    "bitbucket": "bitbucket.org",
    "gist": "gist.github.com",
}

_HTTP_RE = re.compile(r"^https?:", re.IGNORECASE)
_SCP_RE = re.compile(r"^(?:[\w.-]+@)?([\w.-]+\.[a-z]{2,}):(?!//)(.+)$", re.IGNORECASE)
_BARE_SHORTCUT_RE = re.compile(r"^[\w.-]+/[\w.-]+$")


def is_http_url(url: Any) -> bool:
    """Check whether a value is an http(s) URL string."""
    return isinstance(url, str) and bool(_HTTP_RE.match(url.strip()))


def normalize_repo_url(url: str) -> str:
    """Turn a version-control address into a browsable web address.

    Handles the forms commonly found in package manifests:
    - git+https://github.com/user/repo.git
    - git://github.com/user/repo.git
    - git@github.com:user/repo.git
    - ssh://git@github.com/user/repo.git
    - github:user/repo, gitlab:user/repo, bitbucket:user/repo
    - user/repo (GitHub shorthand)

    Anything else is returned unchanged (minus surrounding whitespace).

    Args:
        url: Raw repository URL

    Returns:
        https:// web URL where one can be derived, else the input
    """
    if not isinstance(url, str):
        return ""

    cleaned = url.strip()
    if not cleaned:
        return ""

    # Shortcut syntax
    prefix, sep, rest = cleaned.partition(":")
    if sep and prefix.lower() in _SHORTCUT_HOSTS and not rest.startswith("//"):
        return _web_url(_SHORTCUT_HOSTS[prefix.lower()], rest)
    if _BARE_SHORTCUT_RE.match(cleaned):
        return _web_url("github.com", cleaned)

    if cleaned.lower().startswith("git+"):
        cleaned = cleaned[4:]

    # scp-style: git@github.com:user/repo.git
    scp = _SCP_RE.match(cleaned)
    if scp and "://" not in cleaned:
        return _web_url(scp.group(1), scp.group(2))

    scheme, sep, remainder = cleaned.partition("://")
    if not sep:
        return cleaned

    if scheme.lower() in ("git", "ssh", "http", "https", "git+ssh"):
        # Drop credentials ("git@") and port
        host_part, _, path = remainder.partition("/")
        host = host_part.rsplit("@", 1)[-1].split(":", 1)[0]
        if not host or not path:
            return cleaned
        if scheme.lower() in ("http", "https") and not path.endswith(".git"):
            return cleaned
        return _web_url(host, path)

    return cleaned


def _web_url(host: str, path: str) -> str:
    path = path.strip().strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return f"https://{host.lower()}/{path}"


def pretty_url(pkg: Mapping[str, Any], website: str = REGISTRY_WEBSITE) -> str:
    """Pick the best thing to link to for a package.

    In order of preference:
    1. `homepage` (when it is an http(s) URL)
    2. `repository.url` (or a plain string `repository`), cleaned up
    3. Registry website page for the package

    Never raises: malformed fields fall through to the registry page.

    Args:
        pkg: Raw package document
        website: Base URL of the registry website

    Returns:
        Best guess at a URL
    """
    homepage = pkg.get("homepage") if isinstance(pkg, Mapping) else None
    if is_http_url(homepage):
        return homepage.strip()

    repository = pkg.get("repository") if isinstance(pkg, Mapping) else None
    repo_url: Optional[str] = None
    if isinstance(repository, Mapping):
        candidate = repository.get("url")
        repo_url = candidate if isinstance(candidate, str) else None
    elif isinstance(repository, str):
        repo_url = repository

    if repo_url:
        fixed = normalize_repo_url(repo_url)
        if is_http_url(fixed):
            return fixed

    name = pkg.get("name", "") if isinstance(pkg, Mapping) else ""
    return f"{website}{name if isinstance(name, str) else ''}"


def array_to_lower(items: Iterable[Any]) -> List[str]:
    """Lowercase every string in an iterable, dropping non-strings."""
    return [item.lower() for item in items if isinstance(item, str)]


def keyword_filter(
    keywords: Optional[Iterable[str]],
    filter_keywords: Union[str, Iterable[str]],
) -> bool:
    """Check whether a package carries at least one desired keyword.

    Args:
        keywords: The package's keywords (None treated as empty)
        filter_keywords: Desired keywords; a single string is one keyword

    Returns:
        True if the case-insensitive intersection is non-empty
    """
    if isinstance(filter_keywords, str):
        filter_keywords = [filter_keywords]
    wanted = set(array_to_lower(filter_keywords))
    return any(k in wanted for k in array_to_lower(keywords or []))


def normalize_keywords(raw: Any) -> List[str]:
    """Coerce the manifest `keywords` field into a list of strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if isinstance(raw, (list, tuple)):
        return [k for k in raw if isinstance(k, str)]
    return []


def nice_package(
    name: str, raw: Mapping[str, Any], website: str = REGISTRY_WEBSITE
) -> NormalizedPackage:
    """Normalize one raw registry document.

    Args:
        name: Document key in the registry response (fallback for `name`)
        raw: Raw package document

    Returns:
        NormalizedPackage with resolved version, keywords and URL

    Raises:
        ValueError: If the document is not a mapping or has no latest tag
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"package document for {name!r} is not an object")

    dist_tags = raw.get("dist-tags")
    version = dist_tags.get("latest") if isinstance(dist_tags, Mapping) else None
    if not isinstance(version, str) or not version:
        raise ValueError(f"package {name!r} has no dist-tags.latest")

    pkg_name = raw.get("name")
    if not isinstance(pkg_name, str) or not pkg_name:
        pkg_name = name

    description = raw.get("description")

    return NormalizedPackage(
        name=pkg_name,
        version=version,
        keywords=normalize_keywords(raw.get("keywords")),
        url=pretty_url({**raw, "name": pkg_name}, website=website),
        description=description if isinstance(description, str) else "",
    )
