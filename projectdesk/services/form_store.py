"""
Wizard form state container.

One ProjectFormStore per wizard session. It owns the step index, the
accumulated ProjectFormData, the last validation errors and the state of the
final document upload. Nothing here is global; the session registry hands
stores to request handlers and persistence goes through to_dict/from_dict.
"""

import enum
from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from projectdesk.core.exceptions import (
    AlreadyUploadedError,
    FieldNotEditableError,
    UploadInProgressError,
    UploadStateError,
)
from projectdesk.core.logging_config import logger
from projectdesk.schemas.quotation import QuotationBreakdown
from projectdesk.schemas.wizard import (
    FIRST_STEP,
    LAST_STEP,
    ProjectFormData,
    StepValidationResult,
    validate_step,
)
from projectdesk.services.quotation import generate_quotation as render_quotation


QuotationRenderer = Callable[..., Tuple[str, QuotationBreakdown]]


class UploadState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"


def _field_lookup() -> Dict[str, str]:
    lookup = {}
    for name, info in ProjectFormData.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


_FIELD_NAMES = _field_lookup()

# Fields a client may type into directly. Identity comes from sync_user_data;
# documentation, URLs, budget and quotation come from their own operations.
CLIENT_EDITABLE_FIELDS = frozenset({
    "project_name",
    "project_overview",
    "development_areas",
    "senior_developers",
    "junior_developers",
    "ui_ux_designers",
    "currency",
})


def _profile_value(profile: Any, *keys: str) -> str:
    for key in keys:
        if isinstance(profile, Mapping):
            value = profile.get(key)
        else:
            value = getattr(profile, key, None)
        if value:
            return str(value)
    return ""


class ProjectFormStore:
    """State of one client's project submission wizard"""

    def __init__(
        self,
        form_data: Optional[ProjectFormData] = None,
        step: int = FIRST_STEP,
        validation_errors: Optional[Dict[str, str]] = None,
        upload_state: UploadState = UploadState.IDLE,
        quotation_renderer: QuotationRenderer = render_quotation,
    ):
        self._form = form_data or ProjectFormData()
        self._step = min(max(step, FIRST_STEP), LAST_STEP)
        self._errors: Dict[str, str] = dict(validation_errors or {})
        self._upload_state = UploadState(upload_state)
        self._render_quotation = quotation_renderer
        self.last_breakdown: Optional[QuotationBreakdown] = None

    @property
    def step(self) -> int:
        return self._step

    @property
    def form_data(self) -> ProjectFormData:
        return self._form

    @property
    def validation_errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def upload_state(self) -> UploadState:
        return self._upload_state

    # ========== Mutation ==========

    def update_form_data(self, partial: Mapping[str, Any]) -> ProjectFormData:
        """
        Shallow-merge `partial` into the form.

        Keys may be camelCase aliases or snake_case names; unknown keys are
        dropped. Only type coercion happens here, step rules are checked by
        validate_current_step.
        """
        updates = {}
        for key, value in partial.items():
            name = _FIELD_NAMES.get(key)
            if name is not None:
                updates[name] = value
        if not updates:
            return self._form

        merged = {**self._form.model_dump(), **updates}
        self._form = ProjectFormData.model_validate(merged)
        return self._form

    def apply_client_edits(self, partial: Mapping[str, Any]) -> ProjectFormData:
        """
        update_form_data restricted to CLIENT_EDITABLE_FIELDS.

        Raises FieldNotEditableError listing every offending key, leaving the
        form untouched. Unknown keys are still ignored.
        """
        locked = [
            key for key in partial
            if key in _FIELD_NAMES and _FIELD_NAMES[key] not in CLIENT_EDITABLE_FIELDS
        ]
        if locked:
            raise FieldNotEditableError(locked)
        return self.update_form_data(partial)

    def sync_user_data(self, profile: Any) -> bool:
        """Copy name/email/phone from the signed-in profile, if there is one"""
        if profile is None:
            return False
        self.update_form_data({
            "client_name": _profile_value(profile, "name", "full_name"),
            "client_email": _profile_value(profile, "email"),
            "client_phone_number": _profile_value(profile, "phone_number", "phone"),
        })
        return True

    def reset_form(self) -> None:
        self._form = ProjectFormData()
        self._step = FIRST_STEP
        self._errors = {}
        self._upload_state = UploadState.IDLE
        self.last_breakdown = None

    # ========== Navigation ==========

    def next_step(self) -> int:
        self._step = min(self._step + 1, LAST_STEP)
        return self._step

    def prev_step(self) -> int:
        self._step = max(self._step - 1, FIRST_STEP)
        return self._step

    def check_step(self, step: Optional[int] = None) -> StepValidationResult:
        """Validate a step without touching stored errors"""
        return validate_step(self._step if step is None else step, self._form)

    async def validate_current_step(self) -> bool:
        result = self.check_step()
        if result.ok:
            self._errors = {}
            return True
        self._errors = dict(result.errors)
        logger.debug(f"Wizard step {self._step} invalid: {sorted(self._errors)}")
        return False

    # ========== Derived documents ==========

    def generate_quotation(self, force: bool = False, issued_on: Optional[date] = None) -> bool:
        """
        Render the quotation and write the budget back into the form.

        Skipped when a quotation already exists unless `force` is set; team
        changes after the first run do not trigger a re-render by themselves.
        """
        if self._form.quotation_pdf and not force:
            return False

        html, breakdown = self._render_quotation(self._form, issued_on=issued_on)
        self._form = self._form.model_copy(update={
            "quotation_pdf": html,
            "project_budget": breakdown.total,
        })
        self.last_breakdown = breakdown
        return True

    # ========== Upload state machine ==========

    def begin_upload(self) -> None:
        if self._upload_state == UploadState.UPLOADING:
            raise UploadInProgressError()
        if self._upload_state == UploadState.UPLOADED:
            raise AlreadyUploadedError()
        self._upload_state = UploadState.UPLOADING

    def complete_upload(self, quotation_url: str, documentation_url: str) -> None:
        if self._upload_state != UploadState.UPLOADING:
            raise UploadStateError("No upload in progress", code="NO_UPLOAD_IN_PROGRESS")
        self._form = self._form.model_copy(update={
            "quotation_url": quotation_url,
            "documentation_url": documentation_url,
        })
        self._upload_state = UploadState.UPLOADED

    def fail_upload(self) -> None:
        if self._upload_state == UploadState.UPLOADING:
            self._upload_state = UploadState.IDLE

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self._step,
            "formData": self._form.model_dump(by_alias=True, mode="json"),
            "validationErrors": dict(self._errors),
            "uploadState": self._upload_state.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs) -> "ProjectFormStore":
        return cls(
            form_data=ProjectFormData.model_validate(data.get("formData") or {}),
            step=int(data.get("step", FIRST_STEP)),
            validation_errors=data.get("validationErrors") or {},
            upload_state=UploadState(data.get("uploadState", UploadState.IDLE.value)),
            **kwargs,
        )
