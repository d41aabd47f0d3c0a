from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ApplicationStatus = Literal["applied", "screening", "interview", "offer", "hired", "rejected"]
Importance = Literal["high", "medium", "low"]
ConversationalStyle = Literal["formal", "casual", "friendly"]
LLMProviderName = Literal["openai", "local"]
ChatRole = Literal["user", "assistant", "system", "function"]


class _Flexible(BaseModel):
    """Accepts both snake_case and the camelCase keys LLM output tends to use."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Skill(_Flexible):
    name: str = ""
    score: float = 0


class SkillGroup(_Flexible):
    overall_score: float = Field(default=0, alias="overallScore")
    skills: list[Skill] = Field(default_factory=list)


class CandidateSkills(_Flexible):
    technical: SkillGroup | None = None
    soft: SkillGroup | None = None
    culture: SkillGroup | None = None


class PersonalInfo(_Flexible):
    age: str = ""
    nationality: str = ""
    location: str = ""
    dependents: str = ""
    visa_status: str = ""


class CareerInfo(_Flexible):
    experience: str = ""
    past_roles: str = ""
    progression: str = ""


class InterviewHighlight(_Flexible):
    title: str = ""
    content: str = ""
    timestamp: str = ""


class InterviewFeedback(_Flexible):
    text: str = ""
    praise: bool = False


class InterviewInfo(_Flexible):
    duration: str = ""
    work_eligibility: str = ""
    id_check: str = ""
    highlights: list[InterviewHighlight] = Field(default_factory=list)
    overall_feedback: list[InterviewFeedback] = Field(default_factory=list, alias="overallFeedback")


class CVInfo(_Flexible):
    highlights: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list, alias="keyInsights")
    score: float = 0


class SkillGap(_Flexible):
    name: str = ""
    percentage: float = 0


class LearningPath(_Flexible):
    title: str = ""
    provider: str = ""


class SkillInsights(_Flexible):
    matched_skills: list[str] = Field(default_factory=list, alias="matchedSkills")
    missing_skills: list[str] = Field(default_factory=list, alias="missingSkills")
    skill_gaps: list[SkillGap] = Field(default_factory=list, alias="skillGaps")
    learning_paths: list[LearningPath] = Field(default_factory=list, alias="learningPaths")


class CandidateProfile(_Flexible):
    personal: PersonalInfo | None = None
    career: CareerInfo | None = None
    interview: InterviewInfo | None = None
    skills: CandidateSkills | None = None
    cv: CVInfo | None = None
    skill_insights: SkillInsights | None = Field(default=None, alias="skillInsights")
    recommendation: str = ""

    def technical_skill_names(self) -> list[str]:
        if self.skills is None or self.skills.technical is None:
            return []
        return [skill.name for skill in self.skills.technical.skills if skill.name]


class LightProfile(_Flexible):
    summary: str = ""
    portfolio: str = ""
    insights: str = ""


class JobDescription(_Flexible):
    intro: str = ""
    details: str = ""
    responsibilities: str = ""
    closing: str = ""


class Salary(_Flexible):
    min: float = 0
    max: float = 0
    currency: str = "USD"
    period: str = "year"


class InterviewQuestion(_Flexible):
    id: str
    text: str
    importance: Importance = "medium"
    follow_up_prompts: list[str] = Field(default_factory=list, alias="followUpPrompts")


class AIInterviewerConfig(_Flexible):
    introduction: str = ""
    questions: list[InterviewQuestion] = Field(default_factory=list)
    conversational_style: ConversationalStyle = Field(default="formal", alias="conversationalStyle")
    focus_areas: list[str] = Field(default_factory=list, alias="focusAreas")
    time_limit: float = Field(default=30, alias="timeLimit")
    system_prompt: str | None = Field(default=None, alias="systemPrompt")

    @field_validator("time_limit")
    @classmethod
    def validate_time_limit(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("time_limit must be positive")
        return value


class ProgressSummary(BaseModel):
    total_resumes: int = 0
    meeting_min_criteria: int = 0
    shortlisted: int = 0
    rejected: int = 0
    bias_score: int = 85


class TopCandidate(BaseModel):
    name: str = ""
    position: str = ""
    match_percentage: float = 0
    education: str = ""
    location: str = ""
    achievements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    skill_gaps: list[str] = Field(default_factory=list)
    linkedin: str = ""


class SkillAnalysis(BaseModel):
    total_screened: int = 0
    matching_threshold: int = 75
    shortlisted_rate: int = 0
    average_skill_fit: int = 0


class CandidatesPool(BaseModel):
    top_skills: list[str] = Field(default_factory=list)
    missing_criteria: list[str] = Field(default_factory=list)
    learning_paths: list[LearningPath] = Field(default_factory=list)


class ProgressCandidate(BaseModel):
    id: int
    name: str
    email: str
    match_score: float


class JobProgressSnapshot(BaseModel):
    title: str = ""
    role: str = ""
    summary: ProgressSummary = Field(default_factory=ProgressSummary)
    top_candidate: TopCandidate = Field(default_factory=TopCandidate)
    skill_analysis: SkillAnalysis = Field(default_factory=SkillAnalysis)
    suggested_questions: list[str] = Field(default_factory=list)
    candidates_pool: CandidatesPool = Field(default_factory=CandidatesPool)
    candidates: list[ProgressCandidate] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: ChatRole
    content: str | None = ""
    name: str | None = None


class FunctionCall(BaseModel):
    name: str
    arguments: str = "{}"


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


class ChatReply(BaseModel):
    content: str = ""
    function_call: FunctionCall | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
