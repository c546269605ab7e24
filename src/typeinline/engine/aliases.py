"""Collapse the aliases that denote one declaration into a single entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from typeinline.engine.model import DeclKey, TypeRef

log = logging.getLogger(__name__)


@dataclass(eq=False)
class AliasRecord:
    """A name visible in one file, and the references waiting on it.

    ``external`` records describe a file's export surface (names other
    files import); the others describe its own scope.
    """

    file: str
    name: str
    line: int
    external: bool
    target: DeclKey | None = None
    merged_into: "AliasRecord | None" = None
    pending: list[TypeRef] = field(default_factory=list)


class AliasUnifier:
    """Tracks visible names per file and unifies those resolving to one declaration.

    The first record to resolve to a declaration survives.  A later record
    of the same file and surface that reaches the same declaration is a
    redundant alias: it is logged, merged into the survivor, and its
    waiting references are released alongside the survivor's.
    """

    def __init__(self):
        self._records: dict[tuple[str, str, bool], AliasRecord] = {}
        self._survivors: dict[tuple[str, bool, DeclKey], AliasRecord] = {}

    def track(self, ref: TypeRef, file: str, name: str, line: int, external: bool) -> AliasRecord:
        """Attach *ref* to the record for *name* as seen in *file*."""
        key = (file, name, external)
        record = self._records.get(key)
        if record is None:
            record = AliasRecord(file=file, name=name, line=line, external=external)
            self._records[key] = record
        if record.merged_into is not None:
            record = record.merged_into
        if not ref.resolved:
            record.pending.append(ref)
        if record not in ref.records:
            ref.records.append(record)
        return record

    def unify(self, record: AliasRecord, key: DeclKey) -> list[TypeRef]:
        """Point *record* at *key*; return the references now ready to bind."""
        record.target = key
        survivor = self._survivors.setdefault((record.file, record.external, key), record)
        if survivor is not record and record.merged_into is None:
            if "default" not in (record.name, survivor.name):
                log.warning(
                    "%s:%d: %r is a redundant alias of %r (line %d); using %r",
                    record.file,
                    record.line,
                    record.name,
                    survivor.name,
                    survivor.line,
                    survivor.name,
                )
            record.merged_into = survivor
            survivor.pending.extend(record.pending)
            record.pending = []
        ready = [ref for ref in survivor.pending if not ref.resolved]
        survivor.pending = []
        return ready

    def resolved_names(self, file: str) -> dict[str, DeclKey]:
        """Scope names of *file* that resolved, mapped to their declarations."""
        return {
            name: record.target
            for (rfile, name, external), record in self._records.items()
            if rfile == file and not external and record.target is not None
        }

    def unresolved(self) -> list[TypeRef]:
        refs = []
        for record in self._records.values():
            refs.extend(ref for ref in record.pending if not ref.resolved)
        return list(dict.fromkeys(refs))
