import asyncio
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, UploadFile

from controllers.session_controller import get_openai_client, get_session_store
from models.flow_models import DetectAnomaliesInput, GenerateReportInput
from services.openai.anomaly_detector import AnomalyDetector
from services.openai.media_inputs import MAX_UPLOAD_BYTES, to_image_data_uri
from services.openai.report_generator import ReportGenerator
from services.session_store import SessionStore

ANALYSIS_FAILED_TITLE = "Analysis Failed"
ANALYSIS_FAILED_DESCRIPTION = "The AI could not process the image. Please try another one."
FILE_ERROR_TITLE = "File Error"
FILE_ERROR_DESCRIPTION = "Could not read the selected file."


async def upload_image(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
    """Reset the session, read the upload into a data URI and start the analysis.

    Args:
        request: FastAPI Request (used to access app.state for shared clients).
        session_id: Id of the view session receiving the image.
        file: Uploaded image file.

    Returns:
        The session snapshot with the original image set and both analysis
        loading flags raised. Results land in the session as they arrive.

    Raises:
        HTTPException(404) if the session does not exist.
        HTTPException(400) if the file cannot be read as an image.
    """
    store = get_session_store(request)
    try:
        generation = store.reset(session_id).generation
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    try:
        # One byte past the limit is enough to reject an oversized upload.
        raw = await file.read(MAX_UPLOAD_BYTES + 1)
        photo_data_uri = await asyncio.to_thread(to_image_data_uri, raw, file.content_type)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logging.error("Could not read uploaded file %r: %s", file.filename, exc)
        store.add_notice(session_id, FILE_ERROR_TITLE, FILE_ERROR_DESCRIPTION)
        if store.is_current(session_id, generation):
            store.reset(session_id)
        raise HTTPException(status_code=400, detail=FILE_ERROR_DESCRIPTION) from exc

    # A newer upload or reset arrived while the file was being read.
    if not store.is_current(session_id, generation):
        return store.snapshot(session_id)

    openai_client = get_openai_client(request)
    detector = AnomalyDetector(openai_client)
    reporter = ReportGenerator(openai_client)

    store.update(session_id, generation, original_image=photo_data_uri)
    store.set_loading(session_id, generation, detection=True, report=True)
    task = asyncio.create_task(
        run_analysis(store, session_id, generation, photo_data_uri, detector, reporter)
    )
    store.track(session_id, task)
    return store.snapshot(session_id)


async def run_analysis(
    store: SessionStore,
    session_id: str,
    generation: int,
    photo_data_uri: str,
    detector: AnomalyDetector,
    reporter: ReportGenerator,
) -> None:
    """Detect anomalies, then draft the report, writing each result as it arrives.

    Any failure pushes a notice and resets the whole session; nothing from the
    first stage is kept. Writes from a superseded generation are dropped.
    """
    try:
        detection = await detector.detect(DetectAnomaliesInput(photoDataUri=photo_data_uri))
        applied = store.update(
            session_id,
            generation,
            anomalies=detection.anomalies,
            annotated_image=detection.annotatedImage,
        )
        if not applied:
            return
        store.set_loading(session_id, generation, detection=False)

        result = await reporter.generate(
            GenerateReportInput(
                originalImageDataUri=photo_data_uri,
                annotatedImageDataUri=detection.annotatedImage,
                detectedAnomalies=detection.anomalies,
            )
        )
        store.update(session_id, generation, report=result.report)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logging.error("AI processing error for session %s: %s", session_id, exc)
        if store.is_current(session_id, generation):
            store.add_notice(session_id, ANALYSIS_FAILED_TITLE, ANALYSIS_FAILED_DESCRIPTION)
            store.reset(session_id)
    finally:
        store.set_loading(session_id, generation, report=False)
