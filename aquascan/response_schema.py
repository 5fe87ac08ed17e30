"""
Response Contract for the Water Analysis Model

RESPONSE_SCHEMA is declared to Gemini so it replies with structured JSON.
AnalysisResponse validates that reply before it becomes an AnalysisResult.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from models import AnalysisResult, HealthAlert, RiskLevel, WaterParameters

REQUIRED_FIELDS = ["riskLevel", "score", "summary", "simpleExplanation", "recommendations", "alerts"]

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "riskLevel": {"type": "STRING", "description": "SAFE, CAUTION, or UNSAFE"},
        "score": {"type": "NUMBER", "description": "Safety score from 0-100"},
        "summary": {"type": "STRING", "description": "Professional summary"},
        "simpleExplanation": {
            "type": "STRING",
            "description": "Clear, simple language explanation for the user.",
        },
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "pH": {"type": "NUMBER"},
                "tds": {"type": "NUMBER"},
                "turbidity": {"type": "STRING"},
                "nitrates": {"type": "NUMBER"},
                "chlorine": {"type": "NUMBER"},
                "contaminants": {"type": "ARRAY", "items": {"type": "STRING"}},
            },
        },
        "alerts": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "severity": {"type": "STRING", "description": "high or medium"},
                },
            },
        },
        "recommendations": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": REQUIRED_FIELDS,
}

# Scores on the wrong side of this line contradict the reported risk level
RISK_SCORE_MIDPOINT = 50


class ParametersSchema(BaseModel):
    pH: Optional[float] = None
    tds: Optional[float] = None
    turbidity: Optional[str] = None
    nitrates: Optional[float] = None
    chlorine: Optional[float] = None
    contaminants: Optional[List[str]] = None


class AlertSchema(BaseModel):
    title: str
    description: str
    severity: Literal["high", "medium"]

    @field_validator("severity", mode="before")
    @classmethod
    def _lowercase_severity(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class AnalysisResponse(BaseModel):
    """Structured reply expected from the model."""

    riskLevel: RiskLevel
    score: float = Field(ge=0, le=100)
    summary: str
    simpleExplanation: str
    parameters: Optional[ParametersSchema] = None
    alerts: List[AlertSchema]
    recommendations: List[str]

    @field_validator("riskLevel", mode="before")
    @classmethod
    def _uppercase_risk(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    def risk_agrees_with_score(self) -> bool:
        if self.riskLevel == RiskLevel.SAFE:
            return self.score >= RISK_SCORE_MIDPOINT
        if self.riskLevel == RiskLevel.UNSAFE:
            return self.score <= RISK_SCORE_MIDPOINT
        return True

    def to_result(self, timestamp: str) -> AnalysisResult:
        params = self.parameters or ParametersSchema()
        score = int(self.score) if self.score.is_integer() else self.score
        return AnalysisResult(
            risk_level=self.riskLevel,
            score=score,
            summary=self.summary,
            simple_explanation=self.simpleExplanation,
            parameters=WaterParameters(
                pH=params.pH,
                tds=params.tds,
                turbidity=params.turbidity,
                nitrates=params.nitrates,
                chlorine=params.chlorine,
                contaminants=tuple(params.contaminants) if params.contaminants is not None else None,
            ),
            recommendations=tuple(self.recommendations),
            alerts=tuple(
                HealthAlert(title=a.title, description=a.description, severity=a.severity)
                for a in self.alerts
            ),
            timestamp=timestamp,
        )
