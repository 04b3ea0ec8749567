"""Domain exceptions for the compliance document lifecycle."""

from typing import List, Optional


class ComplianceError(Exception):
    """Base exception for compliance document operations."""
    pass


class DocumentNotFoundError(ComplianceError):
    """Raised when an operation references an unknown document id."""

    def __init__(self, doc_id: str):
        self.doc_id = doc_id
        super().__init__(f"Compliance document {doc_id} not found")


class AttachmentNotFoundError(ComplianceError):
    """Raised when removing an attachment the document does not hold."""

    def __init__(self, doc_id: str, attachment_id: str):
        self.doc_id = doc_id
        self.attachment_id = attachment_id
        super().__init__(f"Attachment {attachment_id} not found on document {doc_id}")


class VersionNotFoundError(ComplianceError):
    """Raised when pointing the current version at an unknown version id."""

    def __init__(self, doc_id: str, version_id: str):
        self.doc_id = doc_id
        self.version_id = version_id
        super().__init__(f"Version {version_id} not found on document {doc_id}")


class InvalidTransitionError(ComplianceError):
    """Raised when a status or submission change is not allowed."""
    pass


class FormIncompleteError(ComplianceError):
    """Raised when a form fails the ready-check."""

    def __init__(self, doc_id: str, missing_fields: List[str], message: Optional[str] = None):
        self.doc_id = doc_id
        self.missing_fields = missing_fields
        super().__init__(
            message or f"Document {doc_id} is missing required fields: {', '.join(missing_fields)}"
        )


class LedgerError(ComplianceError):
    """Raised when a version cannot be appended to the ledger."""
    pass
