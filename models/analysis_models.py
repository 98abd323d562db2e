"""Pydantic models for crop analysis results returned by the model gateway."""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Fertilizer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    dosage: str = ""
    timing: str = ""


class Treatment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    dosage: str = ""
    timing: str = ""
    safetyNote: Optional[str] = None


class NotPlantResult(BaseModel):
    """Returned when the photo does not show a plant or crop."""

    model_config = ConfigDict(extra="ignore")

    isPlant: Literal[False] = False
    notPlantMessage: str = (
        "This image does not appear to contain a plant or crop. "
        "Please upload a clear photo of a plant, leaf, or crop for disease analysis."
    )

    def as_context(self) -> str:
        return "The analyzed image did not contain a plant."


class CropAnalysis(BaseModel):
    """Structured disease analysis for a plant photo."""

    model_config = ConfigDict(extra="ignore")

    isPlant: Literal[True] = True
    name: str
    cropType: str = "Unknown"
    confidence: float = Field(default=0, ge=0, le=100)
    isHealthy: bool = False
    description: str = ""
    severity: Literal["mild", "moderate", "severe"] = "mild"
    precautions: List[str] = Field(default_factory=list)
    fertilizers: List[Fertilizer] = Field(default_factory=list)
    organicTreatments: List[Treatment] = Field(default_factory=list)
    chemicalTreatments: List[Treatment] = Field(default_factory=list)
    preventiveMeasures: List[str] = Field(default_factory=list)

    def as_context(self) -> str:
        """Render the analysis as plain text for follow-up chat requests."""
        lines = [
            f"Crop: {self.cropType}",
            f"Diagnosis: {self.name} ({self.confidence:g}% confidence)",
            f"Healthy: {'yes' if self.isHealthy else 'no'}",
            f"Severity: {self.severity}",
        ]
        if self.description:
            lines.append(f"Description: {self.description}")
        if self.organicTreatments:
            lines.append("Organic treatments: " + ", ".join(t.name for t in self.organicTreatments))
        if self.chemicalTreatments:
            lines.append("Chemical treatments: " + ", ".join(t.name for t in self.chemicalTreatments))
        return "\n".join(lines)


AnalysisResult = Union[CropAnalysis, NotPlantResult]
