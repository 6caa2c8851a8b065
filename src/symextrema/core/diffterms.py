"""Chain-rule term algebra for implicit partial derivatives.

Let ``y_i(x)`` be the dependent variables defined by the constraints. Any
partial derivative of ``F(x, y(x))`` is a sum of terms

    c * d^raw F * prod_j (d^key_j y_{i_j})^p_j

where ``raw`` runs over both independent and dependent axes and each
implicit factor ``d^key y_i`` is an "h" term keyed by the independent
multi-index followed by the dependent-variable index ``i``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence, Tuple

from .multiindex import MultiIndex, excess as index_excess, order_of, unit_index


@dataclass(frozen=True)
class DiffTerm:
    """One monomial ``d^raw F * prod (h_key)^power``.

    ``factors`` is kept sorted and free of zero powers, so dataclass
    equality and hashing are structural.
    """
    raw: MultiIndex
    factors: Tuple[Tuple[MultiIndex, int], ...] = ()

    @classmethod
    def build(cls, raw: Sequence[int], factors: Mapping[MultiIndex, int]) -> "DiffTerm":
        return cls(tuple(raw), tuple(sorted((k, p) for k, p in factors.items() if p > 0)))

    def factor_map(self) -> Dict[MultiIndex, int]:
        return dict(self.factors)

    def order(self, nvars: int) -> int:
        """Total order w.r.t. the independent variables."""
        return sum(self.raw[:nvars]) + sum(p * order_of(key, drop_last=True) for key, p in self.factors)


DiffTerms = Dict[DiffTerm, int]


def unit_terms(nvars: int, nconstr: int) -> DiffTerms:
    """The expansion of ``F`` itself."""
    return {DiffTerm((0,) * (nvars + nconstr)): 1}


def _derive_once(terms: DiffTerms, k: int, nvars: int, nconstr: int) -> DiffTerms:
    out: Dict[DiffTerm, int] = defaultdict(int)
    for term, coeff in terms.items():
        # d/dx_k acting on the raw partial of F, independent axis
        raw = list(term.raw)
        raw[k] += 1
        out[DiffTerm(tuple(raw), term.factors)] += coeff

        fmap = term.factor_map()
        for key, power in term.factors:
            bumped = dict(fmap)
            bumped[key] -= 1
            raised = list(key)
            raised[k] += 1
            raised = tuple(raised)
            bumped[raised] = bumped.get(raised, 0) + 1
            out[DiffTerm.build(term.raw, bumped)] += coeff * power

        # d/dx_k through each dependent variable y_i
        for i in range(nconstr):
            raw = list(term.raw)
            raw[nvars + i] += 1
            chained = dict(fmap)
            key = unit_index(nvars, k) + (i,)
            chained[key] = chained.get(key, 0) + 1
            out[DiffTerm.build(raw, chained)] += coeff
    return {term: c for term, c in out.items() if c != 0}


def derive_diffterms(terms: DiffTerms, excess: Sequence[int], nconstr: int) -> DiffTerms:
    """Differentiate an expansion by the multi-index ``excess``.

    ``excess`` has one entry per independent variable; the rightmost
    non-zero coordinate is consumed first, one derivative at a time.
    """
    nvars = len(excess)
    remaining = list(excess)
    result = dict(terms)
    while any(remaining):
        k = max(i for i, e in enumerate(remaining) if e)
        result = _derive_once(result, k, nvars, nconstr)
        remaining[k] -= 1
    return result


class TermCache:
    """Memo table of expansions keyed by independent multi-index."""

    def __init__(self, nvars: int, nconstr: int) -> None:
        self.nvars = nvars
        self.nconstr = nconstr
        self._table: Dict[MultiIndex, DiffTerms] = {}

    def __contains__(self, sig) -> bool:
        return tuple(sig) in self._table

    def __len__(self) -> int:
        return len(self._table)

    def get(self, sig):
        return self._table.get(tuple(sig))

    def nearest(self, sig: Sequence[int]) -> Tuple[DiffTerms, MultiIndex]:
        """Cached expansion closest below ``sig`` and the remaining excess."""
        best_terms = unit_terms(self.nvars, self.nconstr)
        best_excess = tuple(sig)
        for key, terms in self._table.items():
            diff = index_excess(sig, key)
            if diff is not None and sum(diff) < sum(best_excess):
                best_terms, best_excess = terms, diff
        return best_terms, best_excess

    def expansion(self, sig: Sequence[int]) -> DiffTerms:
        terms, rest = self.nearest(sig)
        if sum(rest) > 0:
            terms = derive_diffterms(terms, rest, self.nconstr)
            self._table[tuple(sig)] = terms
        return terms
