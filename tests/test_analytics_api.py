import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
import pytz
from app.utils.timezone import utc_now


@pytest.fixture
def dashboard_responses(store, make_survey):
    responses = [
        make_survey(
            created_at=datetime(2024, 1, 10, tzinfo=pytz.utc),
            nps_score=10,
            body_area="rodilla",
            how_did_you_know_us="un_amigo",
            additional_comments="Muy bien",
        ),
        make_survey(
            created_at=datetime(2024, 1, 20, tzinfo=pytz.utc),
            nps_score=8,
            body_area="otra",
            other_body_area="Tobillo",
            treatment_type="osteopatia",
            waiting_time="normal",
            how_did_you_know_us="redes_sociales",
        ),
        make_survey(
            created_at=datetime(2024, 2, 5, tzinfo=pytz.utc),
            nps_score=3,
            body_area="rodilla",
            appointment_type="telematica",
            waiting_time="malo",
            doctor_listening=1,
            explanation_clarity=1,
            consultation_time=1,
        ),
    ]
    store._responses.extend(responses)
    return responses


@pytest.mark.asyncio
async def test_dashboard_unauthorized(client: AsyncClient):
    response = await client.get("/analytics/dashboard")
    assert response.status_code in [401, 403]


@pytest.mark.asyncio
async def test_dashboard_missing_permission(client: AsyncClient, mock_jwt_payload, auth_headers):
    from app.main import app
    from app.auth.middleware import verify_token

    mock_jwt_payload.permissions = ["survey:export"]
    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload

    response = await client.get("/analytics/ratings", headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get("/analytics/dashboard", headers=auth_headers)
    assert response.status_code == 200

    data = response.json()
    summary = data["summary"]
    assert summary["total_responses"] == 3
    assert summary["with_comments"] == 1
    assert summary["nps"] == {"nps": 0, "promoters": 1, "passives": 1, "detractors": 1, "total": 3}
    assert summary["satisfaction_level"] is not None

    assert [point["month"] for point in data["trend"]] == ["2024-01", "2024-02"]
    assert [point["nps"] for point in data["trend"]] == [50, -100]

    assert [(zone["zone"], zone["count"]) for zone in data["body_zones"]] == [("rodilla", 2), ("Tobillo", 1)]
    assert len(data["heatmap"]) == 8

    assert data["referrals"][0]["percentage"] == 50
    assert data["snapshot"]["responses"] == 3
    assert data["snapshot"]["stale"] is False
    assert data["snapshot"]["error"] is None


@pytest.mark.asyncio
async def test_dashboard_empty(client: AsyncClient, authorized, auth_headers):
    """No responses yields zeroed figures, not an error."""
    response = await client.get("/analytics/dashboard", headers=auth_headers)
    assert response.status_code == 200

    summary = response.json()["summary"]
    assert summary["total_responses"] == 0
    assert summary["nps"]["nps"] == 0
    assert summary["satisfaction_score"] is None
    assert summary["satisfaction_level"] is None


@pytest.mark.asyncio
async def test_ratings(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get("/analytics/ratings", headers=auth_headers)
    assert response.status_code == 200

    ratings = {item["field"]: item for item in response.json()["ratings"]}
    assert len(ratings) == 7
    assert ratings["doctor_listening"]["average"] == 3.67
    assert ratings["doctor_listening"]["normalized"] == 7.0
    assert ratings["website_design_rating"]["scale_max"] == 3
    assert ratings["website_design_rating"]["normalized"] == 10.0


@pytest.mark.asyncio
async def test_nps_trend_window(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get(
        "/analytics/nps/trend",
        params={"date_preset": "custom", "date_from": "2024-02-01"},
        headers=auth_headers,
    )
    data = response.json()
    assert data["count"] == 1
    assert data["trend"][0]["month"] == "2024-02"
    assert data["snapshot"]["responses"] == 3


@pytest.mark.asyncio
async def test_body_zones(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get("/analytics/body-zones", headers=auth_headers)
    data = response.json()

    zones = {zone["zone"]: zone for zone in data["zones"]}
    assert zones["Tobillo"]["label"] == "Tobillo"
    assert zones["rodilla"]["tier"] == "low"
    heatmap = {zone["zone"]: zone for zone in data["heatmap"]}
    assert heatmap["hombro"]["tier"] == "none"
    assert "otra" not in heatmap


@pytest.mark.asyncio
async def test_referrals(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get("/analytics/referrals", headers=auth_headers)
    data = response.json()
    assert data["answered"] == 2
    assert {item["key"] for item in data["referrals"]} == {"un_amigo", "redes_sociales"}


@pytest.mark.asyncio
async def test_treatments(client: AsyncClient, dashboard_responses, authorized, auth_headers):
    response = await client.get("/analytics/treatments", headers=auth_headers)
    data = response.json()

    appointments = {item["key"]: item["count"] for item in data["appointment_types"]}
    assert appointments == {"presencial": 2, "telematica": 1}
    treatments = {item["key"]: item["count"] for item in data["treatment_types"]}
    assert treatments["fisioterapia"] == 2
    assert treatments["osteopatia"] == 1
    assert treatments["otro"] == 0
    waiting_times = {item["key"]: item["count"] for item in data["waiting_times"]}
    assert waiting_times == {"malo": 1, "normal": 1, "bueno": 1}


@pytest.mark.asyncio
async def test_new_submission_refreshes_dashboard(
    client: AsyncClient, dashboard_responses, survey_payload, authorized, auth_headers
):
    response = await client.get("/analytics/dashboard", headers=auth_headers)
    assert response.json()["summary"]["total_responses"] == 3

    response = await client.post("/surveys/", json=survey_payload)
    assert response.status_code == 201

    response = await client.get("/analytics/dashboard", headers=auth_headers)
    assert response.json()["summary"]["total_responses"] == 4


@pytest.mark.asyncio
async def test_dashboard_keeps_last_good_data_on_failure(
    client: AsyncClient, store, snapshot, dashboard_responses, authorized, auth_headers
):
    await client.get("/analytics/dashboard", headers=auth_headers)

    store.fail_with = ConnectionError("database down")
    snapshot.invalidate()
    response = await client.get("/analytics/dashboard", headers=auth_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["summary"]["total_responses"] == 3
    assert data["snapshot"]["stale"] is True
    assert data["snapshot"]["error"] is not None


@pytest.mark.asyncio
async def test_dashboard_recent_window(client: AsyncClient, store, make_survey, authorized, auth_headers):
    now = utc_now()
    store._responses.extend([
        make_survey(created_at=now - timedelta(days=3), nps_score=10),
        make_survey(created_at=now - timedelta(days=45), nps_score=0),
    ])

    response = await client.get("/analytics/dashboard", params={"date_preset": "last_7_days"}, headers=auth_headers)
    summary = response.json()["summary"]
    assert summary["total_responses"] == 1
    assert summary["nps"]["nps"] == 100


@pytest.mark.asyncio
async def test_dashboard_invalid_date_range(client: AsyncClient, authorized, auth_headers):
    response = await client.get(
        "/analytics/dashboard",
        params={"date_from": "2024-03-01", "date_to": "2024-02-01"},
        headers=auth_headers,
    )
    assert response.status_code == 422
