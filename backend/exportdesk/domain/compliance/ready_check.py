"""Ready-check logic for compliance document forms.

Validates whether a document's form is complete enough to be marked READY
or submitted to the state portal:
- Form type matches the document kind
- All required fields of the form are filled
- Phytosanitary certificates list at least one product line, each with a
  botanical name and quantity
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .forms import PhytoForm, form_type_for, missing_required_fields
from .models import ComplianceDocument


@dataclass
class ReadyCheckResult:
    """Result of a form ready-check."""
    is_ready: bool
    missing_fields: List[str] = field(default_factory=list)
    blocking_reasons: List[str] = field(default_factory=list)
    checked_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_ready": self.is_ready,
            "missing_fields": self.missing_fields,
            "blocking_reasons": self.blocking_reasons,
            "checked_at": self.checked_at,
        }


def run_ready_check(document: ComplianceDocument, checked_at: Optional[datetime] = None) -> ReadyCheckResult:
    """Execute the ready-check on a document's form.

    Args:
        document: Compliance document to check
        checked_at: Timestamp to stamp on the result (defaults to now)

    Returns:
        ReadyCheckResult with missing fields and blocking reasons
    """
    blocking_reasons = []
    form = document.form

    expected_type = form_type_for(document.doc_key)
    if not isinstance(form, expected_type):
        blocking_reasons.append(
            f"form is {type(form).__name__}, expected {expected_type.__name__}"
        )
        missing = []
    else:
        missing = missing_required_fields(form)
        for name in missing:
            blocking_reasons.append(f"{name} missing")

    if isinstance(form, PhytoForm):
        if not form.products:
            blocking_reasons.append("No product lines")
        for index, line in enumerate(form.products, start=1):
            if not line.botanical_name.strip():
                blocking_reasons.append(f"Product {index}: missing botanical_name")
            if not line.quantity_value.strip():
                blocking_reasons.append(f"Product {index}: missing quantity")

    stamp = checked_at or datetime.now(timezone.utc)
    return ReadyCheckResult(
        is_ready=not blocking_reasons,
        missing_fields=missing,
        blocking_reasons=blocking_reasons,
        checked_at=stamp.isoformat(),
    )
