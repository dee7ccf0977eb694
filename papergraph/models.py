"""Paper records and their persisted similarity-result form."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaperRef:
    """A paper without its embedding, as returned from queries.

    Equality and hashing use the (id, title, arxiv_id) triple, so refs
    are usable as similarity-map keys.
    """

    id: str
    title: str
    arxiv_id: str


@dataclass(frozen=True)
class PaperRecord:
    """A paper as ingested: the reference triple plus its embedding.

    The embedding does not take part in equality, so a record compares
    equal to another record for the same paper regardless of its vector.
    """

    id: str
    title: str
    arxiv_id: str
    embedding: tuple = field(default=(), compare=False, repr=False)

    def ref(self):
        return PaperRef(self.id, self.title, self.arxiv_id)


@dataclass(frozen=True)
class PersistedResult:
    """On-disk form of one similarity-map entry."""

    arxiv_id: str
    title: str
    similars: tuple = ()
    id: str = ""

    def key(self):
        return PaperRef(self.id, self.title, self.arxiv_id)
