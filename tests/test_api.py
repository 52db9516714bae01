from pharmasave.core.config import settings
from tests.conftest import PASSWORD

API = settings.API_V1_STR


def _sign_up(client, email="new@cairo.example.com"):
    return client.post(
        f"{API}/auth/sign-up",
        json={"email": email, "password": PASSWORD, "full_name": "Hana Karim", "pharmacy_name": "Cairo Pharmacy"},
    )


def _sign_in(client, email="new@cairo.example.com", password=PASSWORD):
    return client.post(f"{API}/auth/sign-in", data={"username": email, "password": password})


def test_sign_up_to_profile_flow(client):
    resp = _sign_up(client)
    assert resp.status_code == 201
    token = resp.json()["confirmation_token"]

    resp = client.post(f"{API}/auth/confirm", json={"token": token})
    assert resp.status_code == 200
    assert resp.json()["email_confirmed_at"] is not None

    resp = _sign_in(client)
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    resp = client.get(f"{API}/onboarding/profile", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Profile not completed"

    resp = client.post(f"{API}/onboarding/complete-profile", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pharmacy"]["name"] == "Cairo Pharmacy"
    assert body["pharmacy"]["display_id"] == "PH0001"
    assert body["pharmacist"]["role"] == "primary_admin"

    resp = client.get(f"{API}/onboarding/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["already_exists"] is True


def test_unconfirmed_account_cannot_onboard(client):
    _sign_up(client)
    token = _sign_in(client).json()["access_token"]

    resp = client.post(f"{API}/onboarding/complete-profile", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403
    assert resp.json()["message"] == "Email address not confirmed"


def test_duplicate_sign_up(client):
    _sign_up(client)

    resp = _sign_up(client)

    assert resp.status_code == 409
    assert resp.json()["error"] is True


def test_wrong_password(client):
    _sign_up(client)

    resp = _sign_in(client, password="not-the-password")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Incorrect email or password"


def test_missing_token_is_rejected(client):
    resp = client.get(f"{API}/wallet/summary")
    assert resp.status_code == 401


def test_fund_request_endpoint(client, owner_headers):
    resp = client.post(f"{API}/wallet/fund-requests", json={"amount": 500}, headers=owner_headers)

    assert resp.status_code == 201
    assert resp.json()["amount"] == 500
    assert resp.json()["status"] == "pending"

    resp = client.post(f"{API}/wallet/fund-requests", json={"amount": 20}, headers=owner_headers)
    assert resp.status_code == 422


def test_fee_calculation_endpoint(client, owner_headers):
    resp = client.get(f"{API}/transactions/fees/calculate", params={"amount": 100})
    assert resp.status_code == 401

    resp = client.get(f"{API}/transactions/fees/calculate", params={"amount": 100}, headers=owner_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["buyer_fee"] == 3
    assert body["total_fees"] == 6
    assert body["currency"] == "EGP"


def test_document_upload(client, owner_headers):
    resp = client.post(
        f"{API}/documents/upload",
        headers=owner_headers,
        data={"document_type": "license"},
        files={"file": ("license.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert resp.status_code == 200
    assert resp.json()["document_type"] == "license"

    resp = client.get(f"{API}/documents/", headers=owner_headers)
    assert len(resp.json()) == 1


def test_admin_routes_require_admin(client, owner_headers, admin_headers):
    resp = client.get(f"{API}/admin/financial/dashboard", headers=owner_headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Admin access required"

    resp = client.get(f"{API}/admin/financial/dashboard", headers=admin_headers)
    assert resp.status_code == 200
    assert "monthly_recurring_revenue" in resp.json()


def test_admin_management_requires_super_admin(client, admin_headers, super_admin_headers):
    resp = client.get(f"{API}/admin/admins", headers=admin_headers)
    assert resp.status_code == 403

    resp = client.get(f"{API}/admin/admins", headers=super_admin_headers)
    assert resp.status_code == 200
    assert {row["email"] for row in resp.json()} == {"admin@pharmasave.example.com", "root@pharmasave.example.com"}
