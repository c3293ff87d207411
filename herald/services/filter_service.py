"""Package filter construction.

Builds the watcher's predicate from configuration:
- name regex (case-insensitive) OR keyword intersection
- blocked names are always rejected

The resulting predicate is pure; it only reads the package and the
blocklist captured at construction time.
"""

import re
from typing import Optional

import structlog

from herald.models.config import FilterConfig
from herald.models.package import NormalizedPackage
from herald.services.blocklist_service import Blocklist
from herald.services.watcher_service import PackageFilter
from herald.utils.package_utils import keyword_filter

logger = structlog.get_logger()


class PackageFilterService:
    """Configurable package predicate.

    Instances are callable so they can be handed straight to the watcher.
    """

    def __init__(
        self,
        config: Optional[FilterConfig] = None,
        blocklist: Optional[Blocklist] = None,
    ):
        self.config = config or FilterConfig()
        self.blocklist = blocklist or Blocklist.empty()
        self._name_re = (
            re.compile(self.config.name_pattern, re.IGNORECASE)
            if self.config.name_pattern
            else None
        )

        logger.info(
            "filter_initialized",
            name_pattern=self.config.name_pattern,
            keywords=self.config.keywords,
            blocked=len(self.blocklist),
        )

    def matches(self, pkg: NormalizedPackage) -> bool:
        """Whether the package is interesting, ignoring the blocklist."""
        if self.config.match_all:
            return True
        if self._name_re is not None and self._name_re.search(pkg.name):
            return True
        if self.config.keywords and keyword_filter(pkg.keywords, self.config.keywords):
            return True
        return False

    def __call__(self, pkg: NormalizedPackage) -> bool:
        if self.blocklist.is_blocked(pkg.name):
            logger.debug("package_blocked", name=pkg.name)
            return False
        return self.matches(pkg)


def build_filter(
    config: Optional[FilterConfig] = None, blocklist: Optional[Blocklist] = None
) -> PackageFilter:
    """Build the watcher predicate from configuration."""
    return PackageFilterService(config, blocklist)
