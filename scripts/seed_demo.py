"""
Seed demo accounts and loan applications into the configured backend.
Run: python -m scripts.seed_demo (from the project root).

Creates an admin (admin@loandesk.test) and a customer (jane@loandesk.test),
both with password "password123", plus a handful of applications in every status.
"""
import asyncio
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from schemas.auth import Identity
from schemas.profile import ADMIN_ROLE, ProfileRecord
from services.backend import build_backend
from services.errors import AuthError
from services.loan_service import LoanDataService

DEMO_PASSWORD = "password123"

ACCOUNTS = [
    {"email": "admin@loandesk.test", "full_name": "Desk Admin", "role": ADMIN_ROLE},
    {"email": "jane@loandesk.test", "full_name": "Jane Doe", "role": None},
]

APPLICATIONS = [
    {"customer_name": "Jane Doe", "loan_amount": 5_000, "loan_type": "Personal"},
    {"customer_name": "Jane Doe", "loan_amount": 25_000, "loan_type": "Auto"},
    {"customer_name": "Jane Doe", "loan_amount": 80_000, "loan_type": "Home Improvement"},
    {"customer_name": "Jane Doe", "loan_amount": 1_200, "loan_type": None},
]

DECISIONS = [
    {"status": "Approved"},
    {"status": "Rejected", "rejection_reason": "Debt-to-income ratio too high"},
    {"status": "Evidence Required", "evidence_required": "Last three months of payslips"},
]


async def _account(backend, data) -> Identity:
    try:
        session = await backend.auth.sign_up(data["email"], DEMO_PASSWORD, data["full_name"])
    except AuthError:
        print(f"Account {data['email']} already exists, signing in")
        session = await backend.auth.sign_in(data["email"], DEMO_PASSWORD)
    await backend.repository.save_profile(
        ProfileRecord(id=session.user.id, email=session.user.email, full_name=data["full_name"], role=data["role"])
    )
    return Identity(user_id=session.user.id, email=session.user.email, is_admin=data["role"] == ADMIN_ROLE)


async def seed():
    backend = await build_backend(settings)
    try:
        admin = await _account(backend, ACCOUNTS[0])
        customer = await _account(backend, ACCOUNTS[1])

        customer_service = LoanDataService(backend.repository, identity=customer, workflow=backend.workflow)
        admin_service = LoanDataService(backend.repository, identity=admin, workflow=backend.workflow)

        created = []
        for data in APPLICATIONS:
            app = await customer_service.submit_loan_application(**data)
            created.append(app)
            print(f"Seeded application: {app.application_id} ({data['loan_amount']})")

        for app, decision in zip(created, DECISIONS):
            await admin_service.update_application_status(app.application_id, **decision)
            print(f"{app.application_id} -> {decision['status']}")

        payment = await customer_service.submit_payment(created[0].application_id, 250)
        print(f"Seeded payment: {payment.payment_id}")
    finally:
        await backend.close()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
