from symextrema.core.diffterms import DiffTerm, TermCache, derive_diffterms, unit_terms
from symextrema.core.multiindex import ipartition


def test_first_derivative_with_one_constraint():
    terms = derive_diffterms(unit_terms(1, 1), (1,), nconstr=1)
    # F_x + F_y * y'
    assert terms == {DiffTerm((1, 0)): 1, DiffTerm((0, 1), (((1, 0), 1),)): 1}


def test_second_derivative_merges_equal_terms():
    terms = derive_diffterms(unit_terms(1, 1), (2,), nconstr=1)
    # F_xx + 2 F_xy y' + F_yy y'^2 + F_y y''
    assert terms == {
        DiffTerm((2, 0)): 1,
        DiffTerm((1, 1), (((1, 0), 1),)): 2,
        DiffTerm((0, 2), (((1, 0), 2),)): 1,
        DiffTerm((0, 1), (((2, 0), 1),)): 1,
    }


def test_without_constraints_only_raw_partials_appear():
    terms = derive_diffterms(unit_terms(2, 0), (2, 1), nconstr=0)
    assert terms == {DiffTerm((2, 1)): 1}


def test_every_term_has_the_requested_order():
    nvars, nconstr = 2, 2
    for sig in ipartition(3, nvars):
        terms = derive_diffterms(unit_terms(nvars, nconstr), sig, nconstr)
        assert terms
        for term in terms:
            assert term.order(nvars) == 3
            assert len(term.raw) == nvars + nconstr
            assert all(power > 0 for _, power in term.factors)


def test_term_cache_derives_from_nearest_expansion():
    cache = TermCache(2, 1)
    first = cache.expansion((1, 0))
    terms, rest = cache.nearest((2, 1))
    assert terms is first
    assert rest == (1, 1)
    assert cache.expansion((2, 1)) == derive_diffterms(unit_terms(2, 1), (2, 1), 1)
    assert (2, 1) in cache and len(cache) == 2


def test_unit_signature_is_not_cached():
    cache = TermCache(1, 1)
    assert cache.expansion((0,)) == unit_terms(1, 1)
    assert len(cache) == 0
