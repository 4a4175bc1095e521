"""Function tool schemas forcing structured output from the Responses API."""

from typing import Any, Dict


def _function(name: str, description: str, properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "description": description,
        "parameters": {
            "type": "object",
            "properties": properties,
            "required": list(properties),
            "additionalProperties": False,
        },
        "strict": True,
    }


DETECTION_FUNCTION_NAME = "report_ultrasound_anomalies"

DETECTION_FUNCTION: Dict[str, Any] = _function(
    DETECTION_FUNCTION_NAME,
    "Return the anomalies detected in the ultrasound image and an annotated copy of it.",
    {
        "anomalies": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Potential anomalies detected in the image. Empty when none are found.",
        },
        "annotatedImage": {
            "type": "string",
            "description": "The image with detected anomalies highlighted, as a data URI.",
        },
    },
)

REPORT_FUNCTION_NAME = "write_preliminary_report"

REPORT_FUNCTION: Dict[str, Any] = _function(
    REPORT_FUNCTION_NAME,
    "Return the preliminary report for the ultrasound study.",
    {"report": {"type": "string", "description": "The generated preliminary report."}},
)

ANSWER_FUNCTION_NAME = "answer_ultrasound_question"

ANSWER_FUNCTION: Dict[str, Any] = _function(
    ANSWER_FUNCTION_NAME,
    "Return the answer to the question about the ultrasound image.",
    {"answer": {"type": "string", "description": "The answer to the question about the image."}},
)
