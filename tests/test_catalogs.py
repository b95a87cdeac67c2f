from mentara.api.crud.catalog_crud import (
    counselor_catalog,
    section_catalog,
    product_catalog,
    DEFAULT_COUNSELORS,
)


async def test_public_reads_fall_back_to_defaults_on_empty_store(store):
    assert len(await counselor_catalog(store).list_public()) == 3
    assert len(await section_catalog(store).list_public()) == 3
    assert await product_catalog(store).list_public() == []


async def test_stored_list_replaces_defaults(store):
    catalog = counselor_catalog(store)
    await catalog.add({"name": "Dr. Kavya Rao", "specialization": "Grief"})

    public = await catalog.list_public()
    assert [c["name"] for c in public] == ["Dr. Kavya Rao"]
    assert public[0]["specialization"] == ["Grief"]
    assert public[0]["languages"] == ["English", "Hindi"]


async def test_empty_stored_list_is_not_replaced_by_defaults(store):
    catalog = counselor_catalog(store)
    added = await catalog.add({"name": "Temporary"})
    await catalog.delete(added["id"])

    assert await catalog.list_public() == []


async def test_ids_are_unique_within_a_catalog(store):
    catalog = product_catalog(store)
    first = await catalog.add({"name": "Journal", "price": 499})
    second = await catalog.add({"name": "Kit", "price": 899})

    assert first["id"] != second["id"]
    assert first["inStock"] is True


async def test_update_and_delete_report_missing_items(store):
    catalog = section_catalog(store)
    item = await catalog.add({"title": "Box breathing", "type": "article"})

    assert await catalog.update(item["id"], {"title": "Box breathing basics"})
    assert not await catalog.update("missing", {"title": "x"})
    assert (await catalog.list())[0]["title"] == "Box breathing basics"
    assert await catalog.delete(item["id"])
    assert not await catalog.delete(item["id"])


async def test_seed_copies_defaults(store):
    catalog = counselor_catalog(store)
    assert await catalog.seed(DEFAULT_COUNSELORS) == 3
    assert [c["id"] for c in await catalog.list()] == ["1", "2", "3"]
