"""Testing generators – Hypothesis property-based testing strategies.

Requires the ``hypothesis`` package:

    pip install "isolab[test]"
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from isolab.kernel.ledger import BalancePredicate, IsolationLevel

if TYPE_CHECKING:
    from hypothesis.strategies import SearchStrategy


def _require_hypothesis() -> Any:
    """Lazy import guard – raises a clear error when hypothesis is absent."""
    try:
        import hypothesis.strategies as st
        return st
    except ImportError as exc:
        raise ImportError(
            "Install 'hypothesis' to use property-based testing strategies: "
            "pip install hypothesis"
        ) from exc


_OPERATORS: tuple[str, ...] = (">", ">=", "<", "<=", "==", "!=")


def isolation_level_strategy() -> "SearchStrategy[IsolationLevel]":
    st = _require_hypothesis()
    return st.sampled_from(list(IsolationLevel))


def balance_predicate_strategy(
    *,
    min_threshold: int = -1_000,
    max_threshold: int = 1_000,
) -> "SearchStrategy[BalancePredicate]":
    """Hypothesis strategy for :class:`BalancePredicate` over every operator.

    Example::

        @given(balance_predicate_strategy(), st.integers())
        def test_matches_is_total(predicate, balance):
            assert predicate.matches(balance) in (True, False)
    """
    st = _require_hypothesis()
    return st.builds(
        BalancePredicate,
        op=st.sampled_from(_OPERATORS),
        threshold=st.integers(min_value=min_threshold, max_value=max_threshold),
    )


def account_name_strategy() -> "SearchStrategy[str]":
    st = _require_hypothesis()
    return st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=24).map(
        lambda s: f"account-{s}"
    )


def barrier_parties_strategy(max_parties: int = 8) -> "SearchStrategy[int]":
    st = _require_hypothesis()
    return st.integers(min_value=0, max_value=max_parties)


__all__ = [
    "account_name_strategy",
    "balance_predicate_strategy",
    "barrier_parties_strategy",
    "isolation_level_strategy",
]
