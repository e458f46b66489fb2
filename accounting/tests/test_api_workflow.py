# accounting/tests/test_api_workflow.py
"""
Integration test for the student billing workflow.

These tests use API-level testing to verify the full lifecycle
of a student file: bank accounts -> student and pack -> quote ->
installments -> payment -> validation -> journal and reports.

Tests verify the API responses rather than direct database queries
to avoid transaction isolation issues between the API client and
test database connections.
"""
import csv
import io

from django.contrib.auth import get_user_model
from django.test import TransactionTestCase
from rest_framework.test import APIClient

from accounts.models import Company, CompanyMembership
from accounts.permissions import grant_role_defaults


class TestStudentBillingFlow(TransactionTestCase):
    """
    Thin integration test (API-level):
    - Create bank accounts, a student and a pack
    - Quote DRAFT -> SENT -> VALIDATED, then two installments
    - Record a payment (PENDING_VALIDATION) -> validate -> ledger inflow
    - Journal, CSV export and cash flow reflect the inflow
    """

    def setUp(self):
        self.client = APIClient()
        User = get_user_model()

        # 1) Create user
        self.user = User.objects.create_user(
            email="tester@example.com",
            password="pass12345",
            name="Tester",
        )

        # 2) Create company
        self.company = Company.objects.create(
            name="Test Consulting",
            slug="testco",
            default_currency="EUR",
        )

        # 3) Create OWNER membership with its default permissions
        self.membership = CompanyMembership.objects.create(
            user=self.user,
            company=self.company,
            role=CompanyMembership.Role.OWNER,
            is_active=True,
        )
        grant_role_defaults(self.membership, granted_by=self.user)

        # 4) Set active company and authenticate
        self.user.active_company = self.company
        self.user.save(update_fields=["active_company"])
        self.client.force_authenticate(user=self.user)

    def _post(self, url, data, expected=201):
        response = self.client.post(url, data, format="json")
        self.assertEqual(response.status_code, expected, response.content)
        return response.json()

    def test_full_student_flow(self):
        # Bank accounts
        eur = self._post("/api/accounting/bank-accounts/", {
            "account_name": "Main EUR",
            "currency": "EUR",
            "bank_name": "Attijariwafa",
        })
        savings = self._post("/api/accounting/bank-accounts/", {
            "account_name": "Savings EUR",
            "currency": "EUR",
            "account_type": "SAVINGS",
        })
        self.assertEqual(eur["balance"], 0)

        # Student with a pack
        student = self._post("/api/people/students/", {"first_name": "Sara", "last_name": "Alaoui"})
        pack = self._post("/api/people/packs/", {"name": "Admission Premium", "base_price": 300000})
        student_pack = self._post(f"/api/people/students/{student['id']}/packs/", {"pack_id": pack["id"]})
        self.assertEqual(student_pack["custom_price"], 300000)

        # Quote
        quote = self._post("/api/accounting/quotes/", {"student_id": student["id"]})
        self.assertEqual(quote["status"], "DRAFT")
        self.assertEqual(quote["total_amount"], 300000)

        for new_status in ("SENT", "VALIDATED"):
            response = self.client.patch(
                f"/api/accounting/quotes/{quote['id']}/", {"status": new_status}, format="json",
            )
            self.assertEqual(response.status_code, 200, response.content)
            self.assertEqual(response.json()["status"], new_status)

        # Installments
        schedules = self._post(f"/api/accounting/quotes/{quote['id']}/schedules/", {
            "schedules": [
                {"amount": 100000, "due_date": "2030-01-15"},
                {"amount": 200000, "due_date": "2030-03-15"},
            ],
        })
        self.assertEqual([s["installment_number"] for s in schedules], [1, 2])

        mismatch = self.client.post(f"/api/accounting/quotes/{quote['id']}/schedules/", {
            "schedules": [{"amount": 1, "due_date": "2030-01-15"}],
        }, format="json")
        self.assertEqual(mismatch.status_code, 400)
        self.assertIn("detail", mismatch.json())

        # Payment: recorded, then validated
        payment = self._post("/api/accounting/student-payments/", {
            "student_id": student["id"],
            "amount": 100000,
            "currency": "EUR",
            "payment_date": "2030-01-10",
            "bank_account_id": eur["id"],
            "schedule_id": schedules[0]["id"],
        })
        self.assertEqual(payment["status"], "PENDING_VALIDATION")
        self.assertEqual(payment["alerts"], [])

        validated = self._post(f"/api/accounting/student-payments/{payment['id']}/validate/", {}, expected=200)
        self.assertEqual(validated["status"], "VALIDATED")

        overview = self.client.get(f"/api/accounting/quotes/{quote['id']}/schedules/").json()
        self.assertEqual(overview["summary"]["paid"], 100000)
        self.assertEqual(overview["summary"]["percent_paid"], 33)
        self.assertEqual(overview["schedules"][0]["status"], "PAID")

        # Transfer between EUR accounts
        transfer = self._post("/api/accounting/transfers/", {
            "from_account_id": eur["id"],
            "to_account_id": savings["id"],
            "amount": 40000,
            "date": "2030-01-11",
        })
        self.assertEqual(transfer["incoming"]["linked_transaction"], transfer["outgoing"]["id"])
        self.assertEqual(transfer["alerts"], [])

        # Journal
        journal = self.client.get("/api/reports/journal/", {"currency": "EUR"}).json()
        self.assertEqual(journal["pagination"]["total"], 3)
        self.assertEqual(journal["summary"]["totals_by_currency"]["EUR"], {"incoming": 140000, "outgoing": 40000})

        student_rows = self.client.get("/api/reports/journal/", {"type": "STUDENT_PAYMENT"}).json()
        [row] = student_rows["transactions"]
        self.assertEqual(row["student_name"], "Sara Alaoui")
        self.assertTrue(row["transaction_number"].startswith("TXN-2030-"))

        # CSV export
        export = self.client.get("/api/reports/journal/export/", {"format": "csv"})
        self.assertEqual(export.status_code, 200)
        self.assertIn("journal_testco.csv", export["Content-Disposition"])
        lines = list(csv.reader(io.StringIO(export.content.decode("utf-8-sig"))))
        self.assertEqual(len(lines), 4)

        # Cash flow
        cashflow = self.client.get("/api/reports/cashflow/").json()
        balances = {a["account_name"]: a["balance"] for a in cashflow["accounts"]}
        self.assertEqual(balances, {"Main EUR": 60000, "Savings EUR": 40000})
        self.assertEqual(cashflow["totals_by_currency"]["EUR"]["balance"], 100000)

    def test_forecast_months_validated(self):
        self.assertEqual(self.client.get("/api/reports/forecast/", {"months": 3}).status_code, 200)
        self.assertEqual(self.client.get("/api/reports/forecast/", {"months": 25}).status_code, 400)

    def test_viewer_is_forbidden_to_write(self):
        User = get_user_model()
        viewer = User.objects.create_user(email="viewer@example.com", password="pass12345", name="Viewer")
        membership = CompanyMembership.objects.create(
            user=viewer,
            company=self.company,
            role=CompanyMembership.Role.VIEWER,
            is_active=True,
        )
        grant_role_defaults(membership, granted_by=self.user)
        viewer.active_company = self.company
        viewer.save(update_fields=["active_company"])

        client = APIClient()
        client.force_authenticate(user=viewer)

        response = client.post("/api/accounting/bank-accounts/", {
            "account_name": "Sneaky",
            "currency": "EUR",
        }, format="json")
        self.assertEqual(response.status_code, 403)

        self.assertEqual(client.get("/api/accounting/bank-accounts/").status_code, 200)
        self.assertEqual(client.get("/api/reports/journal/export/", {"format": "csv"}).status_code, 403)

    def test_unauthenticated_request_rejected(self):
        response = APIClient().get("/api/reports/cashflow/")
        self.assertEqual(response.status_code, 401)

    def test_health_endpoint(self):
        response = APIClient().get("/_health/live")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "alive"})
