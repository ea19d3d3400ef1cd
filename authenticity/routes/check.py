from fastapi import APIRouter, File, UploadFile
from fastapi.responses import Response

from authenticity.models.schemas import (
    DetectRequest,
    DetectionResponse,
    ErrorResponse,
    ExtractedText,
    HighlightRequest,
    HighlightResponse,
    ParaphraseRequest,
    ParaphraseResponse,
    PlagiarismRequest,
    PlagiarismResponse,
    ReportRequest,
)
from authenticity.services.detector import AIDetector, confidence_label, highlight_result
from authenticity.services.paraphraser import Paraphraser
from authenticity.services.plagiarism import PlagiarismChecker, match_label
from authenticity.services.report_generator import generate_report
from authenticity.utils.highlight import render_highlight
from authenticity.utils.text_extractor import extract_text_from_bytes

router = APIRouter()
detector = AIDetector()
paraphraser = Paraphraser()
plagiarism_checker = PlagiarismChecker()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or content blocked"},
    429: {"model": ErrorResponse, "description": "Rate limited after all retries"},
    500: {"model": ErrorResponse, "description": "Configuration error or malformed AI reply"},
    502: {"model": ErrorResponse, "description": "AI service failed"},
}


@router.post("/check-ai", response_model=DetectionResponse, responses=ERROR_RESPONSES)
def check_ai(request: DetectRequest):
    """
    Scores how likely the text is AI-generated and highlights the sentences
    the detector flagged, per confidence tier.
    """
    result = detector.detect(request.text)
    return DetectionResponse(
        **result.model_dump(),
        highlighted_html=highlight_result(request.text, result),
        confidence_label=confidence_label(result.ai_score),
        submission_id=request.submission_id,
    )


@router.post("/paraphrase-text", response_model=ParaphraseResponse, responses=ERROR_RESPONSES)
def paraphrase_text(request: ParaphraseRequest):
    """
    Rewrites text to sound more human (default, formal, casual, simple).
    """
    result = paraphraser.paraphrase(request.text_to_paraphrase, request.style)
    return ParaphraseResponse(**result.model_dump(), submission_id=request.submission_id)


@router.post("/check-plagiarism", response_model=PlagiarismResponse, responses=ERROR_RESPONSES)
def check_plagiarism(request: PlagiarismRequest):
    result = plagiarism_checker.check(request.text_to_check)
    return PlagiarismResponse(
        **result.model_dump(),
        match_label=match_label(result.plagiarism_score),
        submission_id=request.submission_id,
    )


@router.post("/highlight", response_model=HighlightResponse)
def highlight(request: HighlightRequest):
    html = render_highlight(request.text, {
        "high": request.high_confidence_sentences,
        "medium": request.medium_confidence_sentences,
    })
    return HighlightResponse(highlighted_html=html)


@router.post("/upload-file", response_model=ExtractedText, responses={400: ERROR_RESPONSES[400]})
def upload_file(file: UploadFile = File(...)):
    """
    Extracts text from an uploaded PDF, DOCX or TXT file so it can be checked.
    """
    text = extract_text_from_bytes(file.filename, file.file.read())
    return ExtractedText(text=text, filename=file.filename or "")


@router.post("/download-report", responses={500: ERROR_RESPONSES[500]})
def download_report(request: ReportRequest):
    pdf = generate_report(request.text, request.result)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="ai_detection_report.pdf"'},
    )
