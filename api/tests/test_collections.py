from datetime import date

import pytest

from travelle.schemas.collections import VisitedItem
from travelle.services.collections_service import (
    FavoritesService,
    VisitedService,
    group_by_country,
    group_by_month,
)


@pytest.fixture
def favorites(db, alice, catalog_data):
    return FavoritesService(db, alice)


@pytest.fixture
def visited(db, alice, catalog_data):
    return VisitedService(db, alice)


async def test_anonymous_favorites_are_empty(db, catalog_data):
    service = FavoritesService(db, None)
    assert await service.fetch_all() == []
    assert await service.is_favorite(catalog_data["eiffel"]) is False
    assert await service.add(catalog_data["eiffel"]) is False
    result = await service.toggle(catalog_data["eiffel"])
    assert result.success is False


async def test_add_favorite_is_idempotent(favorites, catalog_data):
    assert await favorites.add(catalog_data["louvre"])
    assert await favorites.add(catalog_data["louvre"])
    items = await favorites.fetch_all()
    assert [f.id for f in items] == [catalog_data["louvre"]]
    assert items[0].city == "Paris"
    assert items[0].country == "France"


async def test_remove_favorite(favorites, catalog_data):
    await favorites.add(catalog_data["prado"])
    assert await favorites.remove(catalog_data["prado"])
    assert await favorites.is_favorite(catalog_data["prado"]) is False


async def test_toggle_favorite_twice_restores_state(favorites, catalog_data):
    first = await favorites.toggle(catalog_data["eiffel"])
    assert first.success is True
    assert first.is_favorite is True
    assert [f.id for f in first.favorites] == [catalog_data["eiffel"]]

    second = await favorites.toggle(catalog_data["eiffel"])
    assert second.success is True
    assert second.is_favorite is False
    assert second.favorites == []


async def test_favorites_ordered_by_place_name(favorites, catalog_data):
    await favorites.add(catalog_data["prado"])
    await favorites.add(catalog_data["eiffel"])
    names = [f.place for f in await favorites.fetch_all()]
    assert names == ["Eiffel Tower", "Prado Museum"]


async def test_anonymous_visit_requires_auth(db, catalog_data):
    service = VisitedService(db, None)
    result = await service.add(catalog_data["eiffel"])
    assert result.success is False
    assert result.requires_auth is True
    assert await service.fetch_all() == []


async def test_mark_visited_defaults_to_today(visited, catalog_data):
    result = await visited.add(catalog_data["eiffel"])
    assert result.success is True
    items = await visited.fetch_all()
    assert items[0].visit_date == date.today()
    assert items[0].place == "Eiffel Tower"
    assert items[0].flag == "fr.png"


async def test_mark_visited_again_updates_visit(visited, catalog_data):
    await visited.add(catalog_data["prado"], date(2023, 4, 1), "rainy")
    await visited.add(catalog_data["prado"], date(2023, 5, 2), "sunny")
    items = await visited.fetch_all()
    assert len(items) == 1
    assert items[0].visit_date == date(2023, 5, 2)
    assert items[0].notes == "sunny"


async def test_visited_ordered_by_date_desc(visited, catalog_data):
    await visited.add(catalog_data["eiffel"], date(2022, 1, 5))
    await visited.add(catalog_data["prado"], date(2024, 3, 9))
    await visited.add(catalog_data["louvre"], date(2023, 7, 1))
    names = [v.place for v in await visited.fetch_all()]
    assert names == ["Prado Museum", "Louvre Museum", "Eiffel Tower"]


async def test_toggle_visited_twice_restores_state(visited, catalog_data):
    first = await visited.toggle(catalog_data["louvre"], date(2024, 6, 1))
    assert first.success is True
    assert first.is_now_visited is True
    assert len(first.visited) == 1

    second = await visited.toggle(catalog_data["louvre"])
    assert second.success is True
    assert second.is_now_visited is False
    assert second.visited == []


def _visit(visit_id, place, country, visit_date):
    return VisitedItem(visit_id=visit_id, place_id=visit_id, place=place, country=country, visit_date=visit_date)


def test_group_by_country_sorts_keys_and_skips_missing():
    items = [
        _visit(1, "Prado Museum", "Spain", date(2024, 3, 9)),
        _visit(2, "Louvre Museum", "France", date(2023, 7, 1)),
        _visit(3, "Unknown", None, date(2023, 7, 2)),
        _visit(4, "Eiffel Tower", "France", date(2022, 1, 5)),
    ]
    groups = group_by_country(items)
    assert list(groups) == ["France", "Spain"]
    assert [v.place for v in groups["France"]] == ["Louvre Museum", "Eiffel Tower"]


def test_group_by_month_newest_first():
    items = [
        _visit(1, "Prado Museum", "Spain", date(2024, 6, 9)),
        _visit(2, "Louvre Museum", "France", date(2023, 7, 1)),
        _visit(3, "Eiffel Tower", "France", date(2024, 6, 2)),
        _visit(4, "Undated", "France", None),
    ]
    groups = group_by_month(items)
    assert list(groups) == ["2024-06", "2023-07"]
    assert groups["2024-06"].label == "June 2024"
    assert len(groups["2024-06"].items) == 2
    assert groups["2023-07"].label == "July 2023"
