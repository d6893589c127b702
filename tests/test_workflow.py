"""
Tests for the application status workflow: allowed moves, required reasons, strict mode.
"""
import unittest

from services.errors import InvalidTransitionError, ValidationError
from services.workflow import (
    ApplicationStatus,
    StatusWorkflow,
    available_actions,
    is_terminal,
    status_note,
)


class TestStatusWorkflow(unittest.TestCase):
    def setUp(self):
        self.workflow = StatusWorkflow()
        self.strict = StatusWorkflow(strict=True)

    def test_approve_needs_no_payload(self):
        change = self.workflow.plan("Pending", "Approved")
        self.assertEqual(change.status, ApplicationStatus.APPROVED)
        self.assertIsNone(change.rejection_reason)
        self.assertIsNone(change.evidence_required)

    def test_reject_requires_reason(self):
        with self.assertRaises(ValidationError) as ctx:
            self.workflow.plan("Pending", "Rejected", rejection_reason="   ")
        self.assertEqual(ctx.exception.field, "rejectionReason")
        change = self.workflow.plan("Pending", "Rejected", rejection_reason=" insufficient income ")
        self.assertEqual(change.rejection_reason, "insufficient income")

    def test_evidence_requires_description(self):
        with self.assertRaises(ValidationError) as ctx:
            self.workflow.plan("Pending", "Evidence Required")
        self.assertEqual(ctx.exception.field, "evidenceRequired")
        change = self.workflow.plan("Pending", "Evidence Required", evidence_required="Payslips")
        self.assertEqual(change.as_fields()["evidence_required"], "Payslips")

    def test_change_clears_the_other_reason(self):
        """A rejection carries no evidence text and vice versa."""
        change = self.workflow.plan("Evidence Required", "Rejected", "no payslips", "payslips")
        self.assertEqual(change.rejection_reason, "no payslips")
        self.assertIsNone(change.evidence_required)

    def test_unknown_status(self):
        with self.assertRaises(ValidationError):
            self.workflow.plan("Pending", "Cancelled")

    def test_lenient_allows_leaving_terminal_states(self):
        change = self.workflow.plan("Rejected", "Approved")
        self.assertEqual(change.status, ApplicationStatus.APPROVED)

    def test_strict_blocks_leaving_terminal_states(self):
        with self.assertRaises(InvalidTransitionError):
            self.strict.plan("Rejected", "Approved")
        with self.assertRaises(InvalidTransitionError):
            self.strict.plan("Evidence Required", "Evidence Required", evidence_required="more")
        self.assertEqual(self.strict.plan("Evidence Required", "Approved").status, ApplicationStatus.APPROVED)

    def test_available_actions(self):
        self.assertEqual(
            available_actions("Pending"),
            [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.EVIDENCE_REQUIRED],
        )
        self.assertEqual(available_actions("Evidence Required"), [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED])
        self.assertEqual(available_actions("Approved"), [])
        self.assertTrue(is_terminal(ApplicationStatus.REJECTED))
        self.assertFalse(is_terminal(ApplicationStatus.PENDING))

    def test_status_note_follows_status(self):
        self.assertEqual(status_note("Rejected", "too risky", None), "too risky")
        self.assertEqual(status_note("Evidence Required", None, "ID card"), "ID card")
        self.assertIsNone(status_note("Approved", "too risky", "ID card"))


if __name__ == "__main__":
    unittest.main()
