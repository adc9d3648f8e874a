"""
tests/test_catalog.py
Tests for the catalog: services, events, packages, booking forms, banners.
"""

import json
import uuid

import pytest
from httpx import AsyncClient

from shared.models.models import Event, Package, Service, User
from tests.conftest import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def package_payload(service: Service, event: Event, **overrides) -> dict:
    payload = {
        "serviceId": str(service.id),
        "eventId": str(event.id),
        "name": "Silver",
        "price": 6000,
        "booking_price": 2000,
        "card_details": [{"product_name": "Prints", "quantity": 20}],
        "package_details": [{"title": "Coverage", "subtitle": ["Candid"]}],
        "bill_details": [{"type": "Base", "amount": 6000}],
        "category": "Standard",
    }
    payload.update(overrides)
    return payload


# ── Services ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_service_requires_admin(client: AsyncClient, user: User):
    response = await client.post(
        "/api/services", headers=auth_headers(user), json={"name": "Videography"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_service(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/services", headers=auth_headers(admin_user), json={"name": "Videography"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Videography"
    assert data["events"] == []


@pytest.mark.asyncio
async def test_create_service_missing_name(client: AsyncClient, admin_user: User):
    response = await client.post("/api/services", headers=auth_headers(admin_user), json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_services_with_events(
    client: AsyncClient, service: Service, event: Event, package: Package
):
    response = await client.get("/api/services")
    assert response.status_code == 200
    [data] = response.json()
    assert data["_id"] == str(service.id)
    [ev] = data["events"]
    assert ev["eventName"] == "Wedding"
    assert ev["packageIds"] == [str(package.id)]
    assert ev["formId"] is None


@pytest.mark.asyncio
async def test_get_service_not_found(client: AsyncClient):
    response = await client.get(f"/api/services/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bulk_rename_services(client: AsyncClient, admin_user: User, service: Service):
    response = await client.put(
        "/api/services",
        headers=auth_headers(admin_user),
        json={"servicesToUpdate": [
            {"_id": str(service.id), "name": "Photo"},
            {"name": "no id, skipped"},
        ]},
    )
    assert response.status_code == 200

    response = await client.get(f"/api/services/{service.id}")
    assert response.json()["name"] == "Photo"


@pytest.mark.asyncio
async def test_bulk_rename_empty_list(client: AsyncClient, admin_user: User):
    response = await client.put(
        "/api/services", headers=auth_headers(admin_user), json={"servicesToUpdate": []}
    )
    assert response.status_code == 400


# ── Events ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_event_with_image(client: AsyncClient, admin_user: User, service: Service):
    response = await client.post(
        "/api/events",
        headers=auth_headers(admin_user),
        data={"eventName": "Birthday", "serviceId": str(service.id), "description": "Kids"},
        files={"image": ("cover.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["eventName"] == "Birthday"
    assert data["image"].startswith("/uploads/events/")
    assert data["serviceId"] == str(service.id)


@pytest.mark.asyncio
async def test_create_event_unknown_service(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/events",
        headers=auth_headers(admin_user),
        data={"eventName": "Birthday", "serviceId": str(uuid.uuid4())},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_event_with_packages(client: AsyncClient, event: Event, package: Package):
    response = await client.get(f"/api/events/{event.id}")
    assert response.status_code == 200
    assert [p["name"] for p in response.json()["packages"]] == ["Gold"]


@pytest.mark.asyncio
async def test_events_for_service(client: AsyncClient, service: Service, event: Event):
    response = await client.get(f"/api/events/service/{service.id}")
    assert response.status_code == 200
    assert [e["_id"] for e in response.json()] == [str(event.id)]


@pytest.mark.asyncio
async def test_events_for_service_none(client: AsyncClient, service: Service):
    response = await client.get(f"/api/events/service/{service.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_event(client: AsyncClient, admin_user: User, event: Event):
    response = await client.put(
        f"/api/events/{event.id}",
        headers=auth_headers(admin_user),
        data={"eventName": "Destination Wedding"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["eventName"] == "Destination Wedding"
    assert data["description"] == "Full-day wedding coverage"


# ── Packages ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_package(
    client: AsyncClient, admin_user: User, service: Service, event: Event
):
    response = await client.post(
        "/api/packages", headers=auth_headers(admin_user), json=package_payload(service, event)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["price"] == 6000
    assert data["card_details"] == [{"product_name": "Prints", "quantity": 20}]

    response = await client.get(f"/api/events/{event.id}")
    assert data["_id"] in response.json()["packageIds"]


@pytest.mark.asyncio
async def test_create_package_unknown_service(
    client: AsyncClient, admin_user: User, service: Service, event: Event
):
    response = await client.post(
        "/api/packages",
        headers=auth_headers(admin_user),
        json=package_payload(service, event, serviceId=str(uuid.uuid4())),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Service not found"


@pytest.mark.asyncio
async def test_create_package_unknown_event(
    client: AsyncClient, admin_user: User, service: Service, event: Event
):
    response = await client.post(
        "/api/packages",
        headers=auth_headers(admin_user),
        json=package_payload(service, event, eventId=str(uuid.uuid4())),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Event ID"


@pytest.mark.asyncio
async def test_packages_for_event(client: AsyncClient, event: Event, package: Package):
    response = await client.get(f"/api/packages/event/{event.id}")
    assert response.status_code == 200
    assert [p["_id"] for p in response.json()] == [str(package.id)]


@pytest.mark.asyncio
async def test_packages_for_event_none(client: AsyncClient, event: Event):
    response = await client.get(f"/api/packages/event/{event.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_package_requires_booking_price(
    client: AsyncClient, admin_user: User, service: Service, event: Event, package: Package
):
    payload = package_payload(service, event)
    del payload["booking_price"]
    response = await client.put(
        f"/api/packages/{package.id}", headers=auth_headers(admin_user), json=payload
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_package(
    client: AsyncClient, admin_user: User, service: Service, event: Event, package: Package
):
    response = await client.put(
        f"/api/packages/{package.id}",
        headers=auth_headers(admin_user),
        json=package_payload(service, event, name="Gold Plus", price=12000),
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Gold Plus"

    response = await client.get(f"/api/packages/{package.id}")
    assert response.json()["price"] == 12000


# ── Forms ──────────────────────────────────────────────────────────────────────

FORM_FIELDS = [
    {"name": "bride", "label": "Bride's name", "type": "text", "required": True,
     "component": "input", "options": []},
    {"name": "theme", "label": "Theme", "type": "text", "required": False,
     "component": "select", "options": ["Haldi", "Mehendi"]},
]


@pytest.mark.asyncio
async def test_form_upsert_creates_then_replaces(
    client: AsyncClient, admin_user: User, event: Event
):
    headers = auth_headers(admin_user)
    payload = {"formTitle": "Wedding details", "eventType": str(event.id), "fields": FORM_FIELDS}

    created = await client.post("/api/forms", headers=headers, json=payload)
    assert created.status_code == 200
    assert created.json()["eventType"] == str(event.id)

    replaced = await client.post(
        "/api/forms", headers=headers, json={**payload, "fields": FORM_FIELDS[:1]}
    )
    assert replaced.status_code == 200
    assert replaced.json()["_id"] == created.json()["_id"]
    assert len(replaced.json()["fields"]) == 1

    response = await client.get(f"/api/events/{event.id}")
    assert response.json()["formId"] == created.json()["_id"]


@pytest.mark.asyncio
async def test_form_unknown_event(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/forms",
        headers=auth_headers(admin_user),
        json={"formTitle": "x", "eventType": str(uuid.uuid4()), "fields": FORM_FIELDS},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_form_invalid_component(client: AsyncClient, admin_user: User, event: Event):
    bad = [{**FORM_FIELDS[0], "component": "slider"}]
    response = await client.post(
        "/api/forms",
        headers=auth_headers(admin_user),
        json={"formTitle": "x", "eventType": str(event.id), "fields": bad},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_form_update_and_fetch(client: AsyncClient, admin_user: User, event: Event):
    headers = auth_headers(admin_user)
    created = await client.post(
        "/api/forms",
        headers=headers,
        json={"formTitle": "Wedding", "eventType": str(event.id), "fields": FORM_FIELDS},
    )
    form_id = created.json()["_id"]

    response = await client.put(
        f"/api/forms/{form_id}", headers=headers, json={"fields": FORM_FIELDS[1:]}
    )
    assert response.status_code == 200

    response = await client.get(f"/api/forms/event/{event.id}")
    assert response.status_code == 200
    assert [f["name"] for f in response.json()["fields"]] == ["theme"]


@pytest.mark.asyncio
async def test_form_fetch_missing(client: AsyncClient, event: Event):
    response = await client.get(f"/api/forms/event/{event.id}")
    assert response.status_code == 404


# ── Banners ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_banner_upload_and_list(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/banner",
        headers=auth_headers(admin_user),
        data={"indexes": json.dumps([2, 1]), "titles": json.dumps(["Second", "First"])},
        files=[
            ("files", ("b2.png", PNG_BYTES, "image/png")),
            ("files", ("b1.png", PNG_BYTES, "image/png")),
        ],
    )
    assert response.status_code == 200
    assert len(response.json()["banners"]) == 2

    response = await client.get("/api/banner")
    banners = response.json()
    assert [b["index"] for b in banners] == [1, 2]
    assert banners[0]["title"] == "First"
    assert banners[0]["url"].startswith("/uploads/banners/")


@pytest.mark.asyncio
async def test_banner_upload_replaces_index(client: AsyncClient, admin_user: User, blob_store):
    headers = auth_headers(admin_user)
    first = await client.post(
        "/api/banner",
        headers=headers,
        data={"indexes": "[1]"},
        files=[("files", ("a.png", PNG_BYTES, "image/png"))],
    )
    old_url = first.json()["banners"][0]["url"]

    await client.post(
        "/api/banner",
        headers=headers,
        data={"indexes": "[1]"},
        files=[("files", ("b.png", PNG_BYTES, "image/png"))],
    )

    banners = (await client.get("/api/banner")).json()
    assert len(banners) == 1
    assert banners[0]["url"] != old_url
    assert not (blob_store.root / old_url[len("/uploads/"):]).exists()


@pytest.mark.asyncio
async def test_banner_batch_with_invalid_file_changes_nothing(
    client: AsyncClient, admin_user: User, blob_store
):
    headers = auth_headers(admin_user)
    first = await client.post(
        "/api/banner",
        headers=headers,
        data={"indexes": "[1]"},
        files=[("files", ("a.png", PNG_BYTES, "image/png"))],
    )
    old_url = first.json()["banners"][0]["url"]

    response = await client.post(
        "/api/banner",
        headers=headers,
        data={"indexes": "[1, 2]"},
        files=[
            ("files", ("b.png", PNG_BYTES, "image/png")),
            ("files", ("notes.txt", b"not an image", "text/plain")),
        ],
    )
    assert response.status_code == 400

    banners = (await client.get("/api/banner")).json()
    assert [b["url"] for b in banners] == [old_url]
    assert (blob_store.root / old_url[len("/uploads/"):]).exists()
    assert len(list((blob_store.root / "banners").iterdir())) == 1


@pytest.mark.asyncio
async def test_update_event_with_invalid_image_keeps_old_one(
    client: AsyncClient, admin_user: User, service: Service, blob_store
):
    headers = auth_headers(admin_user)
    created = await client.post(
        "/api/events",
        headers=headers,
        data={"eventName": "Birthday", "serviceId": str(service.id)},
        files={"image": ("cover.png", PNG_BYTES, "image/png")},
    )
    event = created.json()

    response = await client.put(
        f"/api/events/{event['_id']}",
        headers=headers,
        files={"image": ("cover.txt", b"text", "text/plain")},
    )
    assert response.status_code == 400

    fetched = (await client.get(f"/api/events/{event['_id']}")).json()
    assert fetched["image"] == event["image"]
    assert (blob_store.root / event["image"][len("/uploads/"):]).exists()


@pytest.mark.asyncio
async def test_banner_upload_without_files(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/banner", headers=auth_headers(admin_user), data={"indexes": "[]"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_banner_upload_index_mismatch(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/banner",
        headers=auth_headers(admin_user),
        data={"indexes": "[1, 2]"},
        files=[("files", ("a.png", PNG_BYTES, "image/png"))],
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_banner_delete(client: AsyncClient, admin_user: User):
    headers = auth_headers(admin_user)
    uploaded = await client.post(
        "/api/banner",
        headers=headers,
        data={"indexes": "[1]"},
        files=[("files", ("a.png", PNG_BYTES, "image/png"))],
    )
    banner_id = uploaded.json()["banners"][0]["_id"]

    response = await client.delete(f"/api/banner/{banner_id}", headers=headers)
    assert response.status_code == 200
    assert (await client.get("/api/banner")).json() == []

    response = await client.delete(f"/api/banner/{banner_id}", headers=headers)
    assert response.status_code == 404
