from shop_console.table.columns import RowStore
from shop_console.table.optimistic import PENDING_FLAG, OptimisticPatches


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_overlay_merges_patch_and_flags_pending() -> None:
    patches = OptimisticPatches(ttl_seconds=2, now=FakeClock())
    rows = [{"id": 1, "is_active": True}, {"id": 2, "is_active": True}]

    patches.apply(1, {"is_active": False})
    result = patches.overlay(rows)

    assert result[0] == {"id": 1, "is_active": False, PENDING_FLAG: True}
    assert result[1] is rows[1]
    assert rows[0] == {"id": 1, "is_active": True}


def test_patches_merge_and_expire() -> None:
    clock = FakeClock()
    patches = OptimisticPatches(ttl_seconds=2, now=clock)
    patches.apply(1, {"name": "A"})
    patches.apply(1, {"price": 5})

    assert patches.overlay([{"id": 1}])[0]["name"] == "A"
    assert patches.is_pending(1) is True

    clock.now += 2.5
    assert patches.is_pending(1) is False
    assert patches.overlay([{"id": 1}]) == [{"id": 1}]
    assert patches.pending_ids() == []


def test_revert_drops_patch() -> None:
    patches = OptimisticPatches(now=FakeClock())
    patches.apply("a", {"status": "done"})

    patches.revert("a")

    assert patches.pending_ids() == []


def test_reconcile_reports_confirmed_and_overridden_and_clears() -> None:
    patches = OptimisticPatches(now=FakeClock())
    patches.apply(1, {"status": "shipped"})
    patches.apply(2, {"status": "shipped"})
    patches.apply(3, {"status": "shipped"})
    store = RowStore.from_rows([{"id": 1, "status": "shipped"}, {"id": 2, "status": "pending"}])

    report = patches.reconcile(store)

    assert report == {"confirmed": [1], "overridden": [2, 3]}
    assert patches.pending_ids() == []
