from conftest import make_asset, make_category, make_task

from gallery.models import CategoryType


def test_views_are_ordered(store):
    store.replace_all(
        [make_asset(1), make_asset(3), make_asset(2)],
        [
            make_category(CategoryType.ACTORS, "nova"),
            make_category(CategoryType.ACTORS, "Alex"),
            make_category(CategoryType.MOVEMENTS, "Jump"),
        ],
        [make_task(1), make_task(2)],
    )

    assert [a.id for a in store.assets] == ["asset-3", "asset-2", "asset-1"]
    assert [c.name for c in store.categories] == ["Alex", "Jump", "nova"]
    assert [t.id for t in store.tasks] == ["task-2", "task-1"]


def test_subscribers_are_notified_until_unsubscribed(store):
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(len(s.assets)))

    store.put_assets([make_asset(1)])
    store.put_assets([make_asset(2)])
    unsubscribe()
    store.put_assets([make_asset(3)])

    assert seen == [1, 2]


def test_failing_listener_does_not_block_others(store):
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda s: seen.append(len(s.assets)))

    store.put_assets([make_asset(1)])

    assert seen == [1]


def test_rewrite_asset_field_only_touches_matches(store):
    store.put_assets(
        [
            make_asset(1, movement_type="Walk"),
            make_asset(2, movement_type="Run"),
        ]
    )

    store.rewrite_asset_field("movement_type", "Walk", "Stroll")

    assert store.get_asset("asset-1").movement_type == "Stroll"
    assert store.get_asset("asset-2").movement_type == "Run"


def test_category_names_are_per_kind(store):
    store.put_categories(
        [
            make_category(CategoryType.ACTORS, "Alex"),
            make_category(CategoryType.PERFORMANCE_ACTORS, "Sam"),
        ]
    )

    assert store.category_names(CategoryType.ACTORS) == {"Alex"}
    assert store.category_names(CategoryType.PERFORMANCE_ACTORS) == {"Sam"}
    assert store.category_names(CategoryType.MOVEMENTS) == set()
