"""Scenarios – the isolation anomaly demonstrations.

Every factory returns a fresh :class:`~isolab.harness.Scenario`; account
names and amounts are parameters so the same topology can be reused on a
shared database without clashing on the unique account name.

Barrier names follow one convention: ``written`` / ``updated`` are
signalled by the writer, ``read`` by the reader.
"""
from __future__ import annotations

from collections.abc import Callable

from isolab.harness import (
    Abort,
    AdjustBalance,
    Commit,
    CountWhere,
    InvalidateLocalView,
    ReadBalance,
    Scenario,
    Signal,
    WaitFor,
    WorkerSpec,
)
from isolab.kernel.ledger import IsolationLevel, balance_gt


def _dirty_read_topology(
    name: str,
    isolation: IsolationLevel | str,
    account: str,
    deposit: int,
    expected: int,
    description: str,
) -> Scenario:
    writer = WorkerSpec(
        "writer",
        isolation,
        [
            AdjustBalance(account, deposit),
            Signal("written"),
            WaitFor("read"),
            Abort("transaction rollback"),
        ],
        expect_abort=True,
    )
    reader = WorkerSpec(
        "reader",
        isolation,
        [
            WaitFor("written"),
            ReadBalance(account, expect=expected, label=f"{account} while the writer is uncommitted"),
            Signal("read"),
            Commit(),
        ],
    )
    return Scenario(
        name=name,
        workers=[writer, reader],
        barriers={"written": 1, "read": 1},
        accounts={account: 0},
        description=description,
    )


def dirty_read(
    isolation: IsolationLevel | str = IsolationLevel.READ_UNCOMMITTED,
    account: str = "accountA",
    deposit: int = 100,
) -> Scenario:
    """The reader sees a deposit the writer later rolls back."""
    return _dirty_read_topology(
        "dirty-read",
        isolation,
        account,
        deposit,
        expected=deposit,
        description="writer deposits without committing; reader observes the uncommitted balance; writer aborts",
    )


def dirty_read_prevented(
    isolation: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    account: str = "accountB",
    deposit: int = 100,
) -> Scenario:
    return _dirty_read_topology(
        "dirty-read-prevented",
        isolation,
        account,
        deposit,
        expected=0,
        description="writer deposits without committing; reader still observes the committed balance",
    )


def _read_twice_topology(
    name: str,
    reader_isolation: IsolationLevel | str,
    writer_isolation: IsolationLevel | str,
    account: str,
    deposit: int,
    second_expected: int,
    invalidate: bool,
    description: str,
) -> Scenario:
    second_read = [InvalidateLocalView()] if invalidate else []
    reader = WorkerSpec(
        "reader",
        reader_isolation,
        [
            ReadBalance(account, expect=0, key="first", label=f"first read of {account}"),
            Signal("read"),
            WaitFor("updated"),
            *second_read,
            ReadBalance(account, expect=second_expected, key="second", label=f"second read of {account}"),
            Commit(),
        ],
    )
    writer = WorkerSpec(
        "writer",
        writer_isolation,
        [
            WaitFor("read"),
            AdjustBalance(account, deposit),
            Commit(),
            Signal("updated"),
        ],
    )
    return Scenario(
        name=name,
        workers=[reader, writer],
        barriers={"read": 1, "updated": 1},
        accounts={account: 0},
        description=description,
    )


def non_repeatable_read(
    isolation: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    account: str = "accountC",
    deposit: int = 100,
) -> Scenario:
    """Re-reading a row inside one transaction returns a newly committed value."""
    return _read_twice_topology(
        "non-repeatable-read",
        isolation,
        isolation,
        account,
        deposit,
        second_expected=deposit,
        invalidate=True,
        description="reader reads, writer commits a deposit, reader re-reads after dropping its local view",
    )


def non_repeatable_read_prevented(
    isolation: IsolationLevel | str = IsolationLevel.REPEATABLE_READ,
    account: str = "accountD",
    deposit: int = 100,
) -> Scenario:
    return _read_twice_topology(
        "non-repeatable-read-prevented",
        isolation,
        isolation,
        account,
        deposit,
        second_expected=0,
        invalidate=True,
        description="same interleaving as non-repeatable-read; the second read still returns the first value",
    )


def application_level_repeatable_read(
    isolation: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    account: str = "accountG",
    deposit: int = 100,
) -> Scenario:
    """Without invalidation a session cache hides the concurrent commit.

    Only meaningful on a store whose scopes keep a local view (an ORM
    session, or :class:`~isolab.adapters.identity_map.CachingLedgerStore`).
    """
    return _read_twice_topology(
        "application-level-repeatable-read",
        isolation,
        IsolationLevel.READ_COMMITTED,
        account,
        deposit,
        second_expected=0,
        invalidate=False,
        description="reader re-reads from its session cache and misses the writer's committed deposit",
    )


def _mixed_view_topology(
    name: str,
    reader_isolation: IsolationLevel | str,
    first: str,
    second: str,
    deposit: int,
    second_expected: int,
    description: str,
) -> Scenario:
    reader = WorkerSpec(
        "reader",
        reader_isolation,
        [
            ReadBalance(first, expect=0, key="first", label=f"first read of {first}"),
            Signal("read"),
            WaitFor("updated"),
            ReadBalance(first, expect=0, key="first-again", label=f"cached re-read of {first}"),
            ReadBalance(second, expect=second_expected, key="second", label=f"first read of {second}"),
            Commit(),
        ],
    )
    writer = WorkerSpec(
        "writer",
        IsolationLevel.READ_COMMITTED,
        [
            WaitFor("read"),
            AdjustBalance(first, deposit),
            AdjustBalance(second, deposit),
            Commit(),
            Signal("updated"),
        ],
    )
    return Scenario(
        name=name,
        workers=[reader, writer],
        barriers={"read": 1, "updated": 1},
        accounts={first: 0, second: 0},
        description=description,
    )


def application_level_inconsistent_read(
    isolation: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    first: str = "accountH",
    second: str = "accountI",
    deposit: int = 100,
) -> Scenario:
    """A session cache mixes a stale row with a fresh one.

    The writer funds both accounts in one commit, yet the reader ends up
    with *first* at 0 (served from its cache) and *second* at *deposit*
    (loaded after the commit): a pair no committed state ever held. Needs
    a store whose scopes keep a local view.
    """
    return _mixed_view_topology(
        "application-level-inconsistent-read",
        isolation,
        first,
        second,
        deposit,
        second_expected=deposit,
        description="reader caches one account, writer funds both, reader sees one stale and one fresh balance",
    )


def application_level_inconsistent_read_prevented(
    isolation: IsolationLevel | str = IsolationLevel.REPEATABLE_READ,
    first: str = "accountJ",
    second: str = "accountK",
    deposit: int = 100,
) -> Scenario:
    """At repeatable-read the fresh row comes from the same snapshot as the cached one."""
    return _mixed_view_topology(
        "application-level-inconsistent-read-prevented",
        isolation,
        first,
        second,
        deposit,
        second_expected=0,
        description="same interleaving as application-level-inconsistent-read; both balances stay at 0",
    )


def _phantom_topology(
    name: str,
    reader_isolation: IsolationLevel | str,
    writer_isolation: IsolationLevel | str,
    account: str,
    deposit: int,
    second_expected: int,
    bounded_wait: bool,
    wait_timeout: float | None,
    description: str,
) -> Scenario:
    predicate = balance_gt(0)
    reader = WorkerSpec(
        "reader",
        reader_isolation,
        [
            CountWhere(predicate, expect=0, key="first", label="first count of funded accounts"),
            Signal("read"),
            WaitFor("updated", timeout=wait_timeout, bounded=bounded_wait),
            CountWhere(predicate, expect=second_expected, key="second", label="second count of funded accounts"),
            Commit(),
        ],
    )
    writer = WorkerSpec(
        "writer",
        writer_isolation,
        [
            WaitFor("read"),
            AdjustBalance(account, deposit),
            Commit(),
            Signal("updated"),
        ],
    )
    return Scenario(
        name=name,
        workers=[reader, writer],
        barriers={"read": 1, "updated": 1},
        accounts={account: 0},
        description=description,
    )


def phantom_read(
    isolation: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    account: str = "accountE",
    deposit: int = 100,
) -> Scenario:
    """A filtered count changes inside one transaction after a concurrent commit."""
    return _phantom_topology(
        "phantom-read",
        isolation,
        isolation,
        account,
        deposit,
        second_expected=1,
        bounded_wait=False,
        wait_timeout=None,
        description="reader counts funded accounts, writer funds one and commits, reader counts again",
    )


def phantom_read_prevented(
    isolation: IsolationLevel | str = IsolationLevel.SERIALIZABLE,
    account: str = "accountF",
    deposit: int = 100,
    barrier_timeout: float | None = None,
) -> Scenario:
    """Both counts stay at zero.

    At serializable the writer blocks on the reader's range lock until the
    reader commits, so the reader can only wait a bounded time for the
    ``updated`` barrier before counting again. That bound is a soft
    ordering: on a store slower than the bound the second count may run
    before the writer even reached its update, and the scenario still
    passes without having proven anything. The bound is *barrier_timeout*
    when given, otherwise the runner's ``barrier_timeout`` setting.
    """
    level = IsolationLevel.parse(isolation)
    serializable = level is IsolationLevel.SERIALIZABLE
    return _phantom_topology(
        "phantom-read-prevented",
        level,
        level,
        account,
        deposit,
        second_expected=0,
        bounded_wait=serializable,
        wait_timeout=barrier_timeout if serializable else None,
        description="reader counts funded accounts twice around a concurrent funding and sees no phantom",
    )


CATALOG: dict[str, Callable[..., Scenario]] = {
    "dirty-read": dirty_read,
    "dirty-read-prevented": dirty_read_prevented,
    "non-repeatable-read": non_repeatable_read,
    "non-repeatable-read-prevented": non_repeatable_read_prevented,
    "application-level-repeatable-read": application_level_repeatable_read,
    "application-level-inconsistent-read": application_level_inconsistent_read,
    "application-level-inconsistent-read-prevented": application_level_inconsistent_read_prevented,
    "phantom-read": phantom_read,
    "phantom-read-prevented": phantom_read_prevented,
}


__all__ = [
    "CATALOG",
    "application_level_inconsistent_read",
    "application_level_inconsistent_read_prevented",
    "application_level_repeatable_read",
    "dirty_read",
    "dirty_read_prevented",
    "non_repeatable_read",
    "non_repeatable_read_prevented",
    "phantom_read",
    "phantom_read_prevented",
]
