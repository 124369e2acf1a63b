"""Data transfer objects for remedial action operations."""

from dataclasses import dataclass
from typing import List, Optional

from compliance_hub.domain.entities import ActionSeverity


@dataclass(frozen=True)
class CreateActionRequest:
    """Input data for raising a remedial action."""

    organisation_id: str
    description: str
    code: Optional[str] = None
    severity: ActionSeverity = ActionSeverity.ROUTINE

    def validate(self) -> List[str]:
        errors = []

        if not self.organisation_id:
            errors.append("organisation_id is required")

        if not self.description or not self.description.strip():
            errors.append("description is required")

        return errors
