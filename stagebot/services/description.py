"""Description of the stage -> main pull request.

The body is a bullet list of pull request URLs, most recent first, above
a static footer::

    - https://github.com/o/r/pull/12
    - https://github.com/o/r/pull/9

    ## Testing
    ...

Included URLs are tracked in a set parsed from the bullet lines, so a
pull request is listed once no matter how often it is added.
"""

import re
from typing import Iterable, Set

_ENTRY_RE = re.compile(r"^-\s+(https?://\S+)\s*$", re.MULTILINE)


def parse_entries(body: str) -> Set[str]:
    """URLs listed as bullet lines in body."""
    return set(_ENTRY_RE.findall(body or ""))


class SyncDescription:
    """Running description text shared by merges and sync PR reconciliation."""

    def __init__(self, body: str = "") -> None:
        self._body = body or ""
        self._included = parse_entries(self._body)

    @property
    def body(self) -> str:
        return self._body

    @property
    def included(self) -> Set[str]:
        return set(self._included)

    def __contains__(self, url: object) -> bool:
        return url in self._included

    def add(self, url: str) -> bool:
        """Prepend url as a new bullet unless already listed; return True if added."""
        if not url or url in self._included:
            return False
        self._body = f"- {url}\n{self._body}"
        self._included.add(url)
        return True

    def add_all(self, urls: Iterable[str]) -> int:
        """Add each url in order; return how many were new."""
        return sum(1 for url in urls if self.add(url))
