"""
Wizard Models

Key Models:
- WizardStep: Upload -> Instruction -> Summary
- RecipientList: Ordered, deduplicated, capped list of email addresses
- WizardState: Everything the browser carries between wizard pages

Nothing here is stored server-side; state round-trips through the page's form.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional
import enum
import re

from mango.errors import InvalidRecipient, MissingInput, TooManyRecipients, ValidationFailed
from mango.services.email_service import is_email


PRESET_INSTRUCTIONS = (
    "Summarize in bullet points for executives",
    "Extract only action items with owners and deadlines",
    "Create a detailed meeting recap with key decisions",
    "Highlight important takeaways and next steps",
    "Focus on technical discussions and requirements",
    "Extract financial discussions and budget items",
)

MAX_RECIPIENTS = 10


class WizardStep(enum.Enum):
    UPLOAD = "upload"
    INSTRUCTION = "instruction"
    SUMMARY = "summary"

    @classmethod
    def parse(cls, value: Optional[str]) -> "WizardStep":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UPLOAD


class RecipientList:
    """Recipient chips. Same address (ignoring case) is kept once."""

    def __init__(self, addresses: Iterable[str] = (), limit: int = MAX_RECIPIENTS):
        self.limit = limit
        self._items: List[str] = []
        for address in addresses:
            address = (address or "").strip()
            if address and address.lower() not in self._keys() and len(self._items) < limit:
                self._items.append(address)

    def _keys(self) -> List[str]:
        return [a.lower() for a in self._items]

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __contains__(self, address):
        return (address or "").strip().lower() in self._keys()

    def add(self, address: str) -> bool:
        """Add one address; returns False if it was already present."""
        address = (address or "").strip()
        if not address:
            return False
        if not is_email(address):
            raise InvalidRecipient(f"Invalid email address: {address}")
        if address in self:
            return False
        if len(self._items) >= self.limit:
            raise TooManyRecipients(f"Too many recipients (max {self.limit}).")
        self._items.append(address)
        return True

    def add_many(self, raw: str) -> List[str]:
        """Add every address in a comma/newline separated string."""
        added = []
        for part in re.split(r"[,;\n]+", raw or ""):
            if self.add(part):
                added.append(part.strip())
        return added

    def remove(self, address: str) -> bool:
        key = (address or "").strip().lower()
        for i, existing in enumerate(self._items):
            if existing.lower() == key:
                del self._items[i]
                return True
        return False

    def clear(self) -> None:
        self._items = []

    def to_list(self) -> List[str]:
        return list(self._items)


@dataclass
class WizardState:
    step: WizardStep = WizardStep.UPLOAD
    transcript: str = ""
    instruction: str = ""
    summary: str = ""
    recipients: RecipientList = field(default_factory=RecipientList)

    @classmethod
    def from_form(cls, form: Mapping) -> "WizardState":
        getlist = getattr(form, "getlist", None)
        recipients = getlist("recipients") if getlist else form.get("recipients", [])
        return cls(
            step=WizardStep.parse(form.get("step")),
            transcript=form.get("transcript") or "",
            instruction=form.get("instruction") or "",
            summary=form.get("summary") or "",
            recipients=RecipientList(recipients or []),
        )

    def advance(self) -> WizardStep:
        if self.step is WizardStep.UPLOAD:
            if not self.transcript.strip():
                raise MissingInput("Please provide a transcript first.")
            self.step = WizardStep.INSTRUCTION
        elif self.step is WizardStep.INSTRUCTION:
            if not self.instruction.strip():
                raise MissingInput("Please enter summarization instructions.")
            self.step = WizardStep.SUMMARY
        else:
            raise ValidationFailed("Already at the last step.")
        return self.step

    def back(self) -> WizardStep:
        if self.step is WizardStep.SUMMARY:
            self.step = WizardStep.INSTRUCTION
        elif self.step is WizardStep.INSTRUCTION:
            self.step = WizardStep.UPLOAD
        return self.step

    def use_preset(self, index) -> str:
        try:
            self.instruction = PRESET_INSTRUCTIONS[int(index)]
        except (TypeError, ValueError, IndexError):
            raise ValidationFailed("Unknown preset")
        return self.instruction
