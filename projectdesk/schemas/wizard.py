"""
Wizard form data and per-step validation.

ProjectFormData is the in-progress submission. Each wizard step validates a
slice of it through its own step model; `validate_step` turns pydantic errors
into a flat map of field path to message.
"""

from dataclasses import dataclass, field
from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Type, Union

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from projectdesk.schemas.base import CamelModel
from projectdesk.schemas.quotation import Currency


FIRST_STEP = 1
LAST_STEP = 4

PROJECT_NAME_MIN_LENGTH = 10
PROJECT_OVERVIEW_MIN_LENGTH = 100


# ============================================
# Documentation variants
# ============================================

class NoDocumentation(CamelModel):
    kind: Literal["none"] = "none"


class UploadedDocumentation(CamelModel):
    kind: Literal["uploaded"] = "uploaded"
    file_name: str
    url: str
    size: int = 0


class GeneratedDocumentation(CamelModel):
    kind: Literal["generated"] = "generated"
    html: str


class ImprovedDocumentation(CamelModel):
    kind: Literal["improved"] = "improved"
    html: str
    source_url: Optional[str] = None


Documentation = Annotated[
    Union[NoDocumentation, UploadedDocumentation, GeneratedDocumentation, ImprovedDocumentation],
    Field(discriminator="kind"),
]


def has_documentation(doc) -> bool:
    if isinstance(doc, UploadedDocumentation):
        return bool(doc.url)
    if isinstance(doc, (GeneratedDocumentation, ImprovedDocumentation)):
        return bool(doc.html.strip())
    return False


# ============================================
# Form data
# ============================================

class ProjectFormData(CamelModel):
    client_name: str = ""
    client_email: str = ""
    client_phone_number: str = ""

    project_name: str = ""
    project_overview: str = ""
    development_areas: List[str] = []

    senior_developers: int = 0
    junior_developers: int = 0
    ui_ux_designers: int = 0

    documentation: Documentation = Field(default_factory=NoDocumentation)
    documentation_url: Optional[str] = None

    currency: Currency = Currency.INR
    quotation_pdf: str = ""
    quotation_url: Optional[str] = None
    project_budget: float = 0

    @property
    def team_size(self) -> int:
        return self.senior_developers + self.junior_developers + self.ui_ux_designers


# ============================================
# Step schemas
# ============================================

class StepSchema(CamelModel):
    # Path reported for errors raised by a model-level validator
    ERROR_PATH: ClassVar[str] = ""


class ProjectDetailsStep(StepSchema):
    project_name: str
    project_overview: str

    @field_validator("project_name")
    @classmethod
    def name_long_enough(cls, v: str) -> str:
        if len(v) < PROJECT_NAME_MIN_LENGTH:
            raise PydanticCustomError(
                "project_name_too_short",
                "Project name must be at least 10 characters",
            )
        return v

    @field_validator("project_overview")
    @classmethod
    def overview_long_enough(cls, v: str) -> str:
        if len(v) < PROJECT_OVERVIEW_MIN_LENGTH:
            raise PydanticCustomError(
                "project_overview_too_short",
                "Project overview must be at least 100 characters",
            )
        return v


class TeamCompositionStep(StepSchema):
    TEAM_FIELDS: ClassVar[tuple] = ("seniorDevelopers", "juniorDevelopers", "uiUxDesigners")

    development_areas: List[str] = []
    senior_developers: int = Field(0, ge=0)
    junior_developers: int = Field(0, ge=0)
    ui_ux_designers: int = Field(0, ge=0)
    # Headcount across all roles, filled in before field validation
    team_members: int = 0

    @model_validator(mode="before")
    @classmethod
    def count_team(cls, data):
        if isinstance(data, dict):
            counts = [data.get(name) for name in cls.TEAM_FIELDS]
            total = sum(c for c in counts if isinstance(c, int) and c > 0)
            data = {**data, "teamMembers": total}
        return data

    @field_validator("development_areas")
    @classmethod
    def areas_present(cls, v: List[str]) -> List[str]:
        if not v:
            raise PydanticCustomError(
                "development_areas_empty",
                "At least one development area is required",
            )
        return v

    @field_validator("team_members")
    @classmethod
    def someone_on_the_team(cls, v: int) -> int:
        if v <= 0:
            raise PydanticCustomError(
                "team_empty",
                "At least one team member is required",
            )
        return v


class DocumentationStep(StepSchema):
    ERROR_PATH: ClassVar[str] = "documentation"

    documentation: Documentation = Field(default_factory=NoDocumentation)

    @model_validator(mode="after")
    def documentation_provided(self):
        if not has_documentation(self.documentation):
            raise PydanticCustomError(
                "documentation_missing",
                "Either upload a file or generate documentation",
            )
        return self


STEP_SCHEMAS: Dict[int, Type[StepSchema]] = {
    1: ProjectDetailsStep,
    2: TeamCompositionStep,
    3: DocumentationStep,
}


# ============================================
# Validation result
# ============================================

@dataclass(frozen=True)
class StepPassed:
    step: int
    ok: Literal[True] = True


@dataclass(frozen=True)
class StepFailed:
    step: int
    errors: Dict[str, str] = field(default_factory=dict)
    ok: Literal[False] = False


StepValidationResult = Union[StepPassed, StepFailed]


def _error_path(schema: Type[StepSchema], loc) -> str:
    path = ".".join(str(part) for part in loc)
    return path or schema.ERROR_PATH


def validate_step(step: int, form: ProjectFormData) -> StepValidationResult:
    """Validate the slice of `form` that `step` is responsible for"""
    schema = STEP_SCHEMAS.get(step)
    if schema is None:
        return StepPassed(step=step)

    try:
        schema.model_validate(form.model_dump(by_alias=True))
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            # First message per path wins
            errors.setdefault(_error_path(schema, error["loc"]), error["msg"])
        return StepFailed(step=step, errors=errors)

    return StepPassed(step=step)
