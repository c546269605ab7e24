"""Load the module a group of missing names comes from and keep resolving there."""

from __future__ import annotations

import logging

from typeinline.engine.model import Lookup
from typeinline.languages.base import ScannedFile

log = logging.getLogger(__name__)


class CrossModuleLoader:
    """Resolves a specifier relative to its importing file and hands the
    names on to the resolver, inside the same session."""

    def __init__(self, session):
        self.session = session

    def load(self, specifier: str, lookups: list[Lookup], origin: str, extract) -> ScannedFile | None:
        """Load *specifier* as imported from *origin* and run *extract* on it.

        Returns the scanned module, or None when the specifier does not map
        to a file; the names then simply stay missing.
        """
        session = self.session
        path = session.resolve_module(specifier, origin, session.aliases)
        if path is None:
            log.debug(
                "%s: module %r not found; leaving %s unresolved",
                origin,
                specifier,
                ", ".join(sorted({lookup.name for lookup in lookups})),
            )
            return None
        scanned = session.scan_file(str(path))
        extract(scanned, lookups)
        return scanned
