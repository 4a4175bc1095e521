"""Prompt builders for the ultrasound analysis operations."""

from typing import Sequence


def detection_system_prompt() -> str:
    """Return the system prompt for anomaly detection."""
    return (
        "You are an AI expert in analyzing ultrasound images for anomalies. "
        "You are careful and conservative, and you describe findings in plain clinical language."
    )


def detection_user_prompt() -> str:
    """Return the user prompt for anomaly detection."""
    return (
        "Analyze the provided ultrasound image and identify any potential abnormalities. "
        "Return two fields through the tool call:\n"
        "1. anomalies: an array of strings, one short description per detected anomaly. "
        "If no anomalies are found you MUST return an empty array. This field is mandatory.\n"
        "2. annotatedImage: a data URI of the image with the detected anomalies highlighted."
    )


def report_system_prompt() -> str:
    """Return the system prompt for preliminary report generation."""
    return "You are an AI assistant specialized in generating preliminary reports for ultrasound images."


def report_user_prompt(detected_anomalies: Sequence[str]) -> str:
    """Return the report prompt listing the detected anomalies."""
    anomalies_text = ", ".join(detected_anomalies) if detected_anomalies else "None detected"
    return (
        "Based on the original ultrasound image, the AI-annotated image, and the detected anomalies, "
        "generate a concise and informative preliminary report. "
        "The first image is the original, the second is the annotated version.\n\n"
        f"Detected Anomalies: {anomalies_text}"
    )


def question_system_prompt() -> str:
    """Return the system prompt for image question answering."""
    return "You are an expert in interpreting ultrasound images."


def question_user_prompt(question: str) -> str:
    """Return the user prompt wrapping a free-text question."""
    return f"Please answer the following question about the ultrasound image.\n\nQuestion: {question}"
