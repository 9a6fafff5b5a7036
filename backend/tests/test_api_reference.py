from conftest import booking_payload

from staycost.routers import dashboard


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.json() == {"status": "ok", "service": "staycost"}


async def test_point_type_crud_and_conflict(client, ref):
    created = await client.post(
        "/api/point-types", json={"name": "Avios", "category": "airline", "cents_per_point": "0.012"}
    )
    assert created.status_code == 201
    assert created.json()["cents_per_point"] == 0.012

    duplicate = await client.post(
        "/api/point-types", json={"name": "Avios", "category": "airline", "cents_per_point": "0.01"}
    )
    assert duplicate.status_code == 409

    in_use = await client.delete(f"/api/point-types/{ref.hyatt_points_id}")
    assert in_use.status_code == 409
    assert "referenced" in in_use.json()["error"]

    assert (await client.delete(f"/api/point-types/{created.json()['id']}")).status_code == 200


async def test_point_value_change_reprices_multipliers(client, ref):
    booking = (await client.post("/api/bookings", json=booking_payload(ref.hyatt_id))).json()
    await client.post(
        "/api/promotions",
        json={"name": "Double", "type": "loyalty", "value_type": "points_multiplier", "value": "2"},
    )

    resp = await client.put(f"/api/point-types/{ref.hyatt_points_id}", json={"cents_per_point": "0.01"})
    assert resp.json()["reevaluation"]["evaluated"] == 1

    detail = (await client.get(f"/api/bookings/{booking['id']}")).json()
    assert detail["booking_promotions"][0]["applied_value"] == 48.75


async def test_chain_base_rate_change_recalculates_non_manual_only(client, ref):
    auto = (await client.post("/api/bookings", json=booking_payload(ref.marriott_id))).json()
    manual = (await client.post(
        "/api/bookings", json=booking_payload(ref.marriott_id, loyalty_points_earned=1234)
    )).json()
    assert auto["loyalty_points_earned"] == 7500

    same = await client.put(f"/api/hotel-chains/{ref.marriott_id}", json={"base_point_rate": "10.0"})
    assert "loyalty" not in same.json()

    changed = await client.put(f"/api/hotel-chains/{ref.marriott_id}", json={"base_point_rate": "12.5"})
    assert changed.status_code == 200
    assert changed.json()["loyalty"]["updated"] == 1
    assert changed.json()["loyalty"]["skipped_manual"] == 1
    assert changed.json()["reevaluation"]["failed"] == []

    assert (await client.get(f"/api/bookings/{auto['id']}")).json()["loyalty_points_earned"] == 9375
    assert (await client.get(f"/api/bookings/{manual['id']}")).json()["loyalty_points_earned"] == 1234


async def test_sub_brand_rate_change_recalculates(client, ref):
    booking = (await client.post(
        "/api/bookings", json=booking_payload(ref.marriott_id, hotel_chain_sub_brand_id=ref.element_id)
    )).json()
    assert booking["loyalty_points_earned"] == 3750

    resp = await client.put(f"/api/hotel-chain-sub-brands/{ref.element_id}", json={"base_point_rate": "4"})
    assert resp.json()["loyalty"]["updated"] == 1
    assert (await client.get(f"/api/bookings/{booking['id']}")).json()["loyalty_points_earned"] == 3000


async def test_user_status_upsert(client, ref):
    cross_chain = await client.post(
        "/api/user-statuses", json={"hotel_chain_id": ref.hyatt_id, "elite_status_id": ref.titanium_id}
    )
    assert cross_chain.status_code == 400

    booking = (await client.post("/api/bookings", json=booking_payload(ref.marriott_id))).json()
    resp = await client.post(
        "/api/user-statuses", json={"hotel_chain_id": ref.marriott_id, "elite_status_id": ref.titanium_id}
    )
    assert resp.status_code == 200
    assert resp.json()["elite_status"]["name"] == "Titanium"
    assert resp.json()["loyalty"]["updated"] == 1
    # 750 * 10 * 1.75
    assert (await client.get(f"/api/bookings/{booking['id']}")).json()["loyalty_points_earned"] == 13125

    unchanged = await client.post(
        "/api/user-statuses", json={"hotel_chain_id": ref.marriott_id, "elite_status_id": ref.titanium_id}
    )
    assert "loyalty" not in unchanged.json()

    statuses = (await client.get("/api/user-statuses")).json()
    assert {s["hotel_chain_id"] for s in statuses} == {ref.hyatt_id, ref.marriott_id}


async def test_elite_tier_edit_recalculates_current_tier(client, ref):
    booking = (await client.post("/api/bookings", json=booking_payload(ref.hyatt_id))).json()

    other = await client.put(f"/api/elite-statuses/{ref.explorist_id}", json={"bonus_percentage": "0.25"})
    assert "loyalty" not in other.json()

    current = await client.put(f"/api/elite-statuses/{ref.globalist_id}", json={"bonus_percentage": "0.4"})
    assert current.json()["loyalty"]["updated"] == 1
    assert (await client.get(f"/api/bookings/{booking['id']}")).json()["loyalty_points_earned"] == 5250

    removed = await client.delete(f"/api/elite-statuses/{ref.globalist_id}")
    assert removed.json()["loyalty"]["updated"] == 1
    assert (await client.get(f"/api/bookings/{booking['id']}")).json()["loyalty_points_earned"] == 3750


async def test_chain_crud_and_delete_conflicts(client, ref):
    created = await client.post(
        "/api/hotel-chains", json={"name": "IHG", "base_point_rate": "10", "point_type_id": ref.hyatt_points_id}
    )
    assert created.status_code == 201
    chain_id = created.json()["id"]

    sub_brand = await client.post(f"/api/hotel-chains/{chain_id}/sub-brands", json={"name": "Staybridge Suites"})
    assert sub_brand.status_code == 201
    tier = await client.post(
        f"/api/hotel-chains/{chain_id}/elite-statuses", json={"name": "Diamond", "bonus_percentage": "1.0"}
    )
    assert tier.status_code == 201

    detail = (await client.get(f"/api/hotel-chains/{chain_id}")).json()
    assert [sb["name"] for sb in detail["sub_brands"]] == ["Staybridge Suites"]
    assert [es["name"] for es in detail["elite_statuses"]] == ["Diamond"]

    await client.post(
        "/api/bookings",
        json=booking_payload(chain_id, hotel_chain_sub_brand_id=sub_brand.json()["id"]),
    )
    assert (await client.delete(f"/api/hotel-chains/{chain_id}")).status_code == 409
    assert (await client.delete(f"/api/hotel-chain-sub-brands/{sub_brand.json()['id']}")).status_code == 409

    empty = (await client.post("/api/hotel-chains", json={"name": "Accor"})).json()
    assert (await client.delete(f"/api/hotel-chains/{empty['id']}")).status_code == 200
    assert (await client.get(f"/api/hotel-chains/{empty['id']}")).status_code == 404


async def test_cards_portals_and_ota(client, ref):
    booking = (await client.post(
        "/api/bookings",
        json=booking_payload(ref.hyatt_id, credit_card_id=ref.amex_id, shopping_portal_id=ref.rakuten_id,
                             portal_cashback_rate="2", booking_source="ota", ota_agency_id=ref.fhr_id),
    )).json()

    # Soft delete hides the card but the booking still prices it
    assert (await client.delete(f"/api/credit-cards/{ref.amex_id}")).status_code == 200
    cards = (await client.get("/api/credit-cards")).json()
    assert ref.amex_id not in [c["id"] for c in cards]
    detail = (await client.get(f"/api/bookings/{booking['id']}")).json()
    assert detail["credit_card"]["name"] == "Amex Platinum"
    assert detail["breakdown"]["card_reward"] == 18.0

    assert (await client.delete(f"/api/portals/{ref.rakuten_id}")).status_code == 409
    assert (await client.delete(f"/api/ota-agencies/{ref.fhr_id}")).status_code == 409
    assert (await client.delete(f"/api/portals/{ref.topcashback_id}")).status_code == 200

    no_point_type = await client.post("/api/portals", json={"name": "Bilt portal", "reward_type": "points"})
    assert no_point_type.status_code == 400


async def test_benefit_valuations_save_and_resolve(client, ref):
    resp = await client.put(
        "/api/benefit-valuations",
        json={"valuations": [
            {"is_eqn": True, "value": "10"},
            {"hotel_chain_id": ref.hyatt_id, "is_eqn": True, "value": "20"},
            {"cert_type": "hyatt_cat1_4", "value": "15000", "value_type": "points"},
        ]},
    )
    assert resp.status_code == 200
    assert resp.json()["updated"] == 3
    assert resp.json()["reevaluation"] == {"evaluated": 0, "failed": []}

    booking = (await client.post(
        "/api/bookings", json=booking_payload(ref.hyatt_id, certificates=[{"cert_type": "hyatt_cat1_4"}])
    )).json()
    # 15000 pts at 2¢
    assert booking["breakdown"]["certs_value"] == 300.0

    cleared = await client.put(
        "/api/benefit-valuations",
        json={"valuations": [{"hotel_chain_id": ref.hyatt_id, "is_eqn": True, "value": None}]},
    )
    rows = cleared.json()["valuations"]
    assert len(rows) == 3
    assert next(r for r in rows if r["hotel_chain_id"] == ref.hyatt_id)["value"] is None

    invalid = await client.put(
        "/api/benefit-valuations",
        json={"valuations": [{"is_eqn": True, "cert_type": "hyatt_cat1_4", "value": "1"}]},
    )
    assert invalid.status_code == 400

    listing = (await client.get("/api/benefit-valuations")).json()
    assert "marriott_35k" in listing["cert_types"]


async def test_dashboard_summary(client, ref):
    await client.post("/api/bookings", json=booking_payload(ref.hyatt_id, credit_card_id=ref.csr_id))
    await client.post("/api/bookings", json=booking_payload(ref.marriott_id, property_name="W Chicago"))

    summary = (await client.get("/api/dashboard/summary")).json()
    assert summary["booking_count"] == 2
    assert summary["total_nights"] == 6
    assert summary["total_cash"] == 1800.0
    # Hyatt: 54 card + 97.5 points; Marriott: 7500 pts at 0.7¢ = 52.5
    assert summary["total_savings"] == 204.0
    assert summary["total_net_cost"] == 1596.0
    assert {c["hotel_chain"] for c in summary["by_chain"]} == {"Hyatt", "Marriott"}


async def test_unexpected_errors_render_debug(client, monkeypatch):
    async def explode(db, booking_ids=None):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(dashboard, "load_bookings", explode)
    resp = await client.get("/api/dashboard/summary")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert body["debug"]["type"] == "RuntimeError"
    assert body["debug"]["message"] == "database on fire"
