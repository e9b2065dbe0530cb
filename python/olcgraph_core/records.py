"""Value types shared by the overlap finder and the graph builders."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DiagonalAlignment:
    """Running estimate of one local alignment between two reads.

    ``ref_start`` and ``partner_start`` are the positions of the first seed
    hit; the lengths grow as further hits on the same diagonal arrive.
    """

    ref_start: int
    partner_start: int
    ref_length: int
    partner_length: int
    hits: int = 1

    @property
    def diagonal(self) -> int:
        return self.partner_start - self.ref_start

    @property
    def ref_end(self) -> int:
        return self.ref_start + self.ref_length

    @property
    def partner_end(self) -> int:
        return self.partner_start + self.partner_length


@dataclass(frozen=True)
class Embedding:
    """``embedded_id`` lies inside ``parent_id`` starting at ``offset``.

    ``reversed`` is True when the embedded read matches the reverse
    complement of the parent region.
    """

    embedded_id: int
    parent_id: int
    offset: int
    reversed: bool
    rate: float = 1.0


@dataclass(frozen=True)
class Overlap:
    """A suffix of ``from_id`` abuts a prefix of ``to_id``.

    The ``*_reversed`` flags tell which strand of each read takes part.
    """

    from_id: int
    from_reversed: bool
    to_id: int
    to_reversed: bool
    length: int
    rate: float = 1.0
