"""Input and output contracts for the hosted-model operations.

Field names are camelCase because they are the wire names used by the page and
the `/api/flows` endpoints.
"""

from typing import List

from pydantic import BaseModel, Field


class DetectAnomaliesInput(BaseModel):
    photoDataUri: str = Field(
        ...,
        description="An ultrasound image as a data URI: 'data:<mimetype>;base64,<encoded_data>'.",
    )


class DetectAnomaliesOutput(BaseModel):
    anomalies: List[str] = Field(
        default_factory=list,
        description="Potential anomalies detected in the image; empty when none are found.",
    )
    annotatedImage: str = Field(
        ..., description="The image with detected anomalies highlighted, as a data URI."
    )


class AnswerQuestionInput(BaseModel):
    photoDataUri: str = Field(..., description="The ultrasound image as a data URI.")
    question: str = Field(..., description="The question about the ultrasound image.")


class AnswerQuestionOutput(BaseModel):
    answer: str = Field(..., description="The answer to the question about the image.")


class GenerateReportInput(BaseModel):
    originalImageDataUri: str = Field(..., description="The original ultrasound image as a data URI.")
    annotatedImageDataUri: str = Field(..., description="The annotated ultrasound image as a data URI.")
    detectedAnomalies: List[str] = Field(
        default_factory=list, description="Anomalies detected in the ultrasound image."
    )


class GenerateReportOutput(BaseModel):
    report: str = Field(..., description="The generated preliminary report.")
