# Feedback routes
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from schemas.scan import FeedbackRequest
from services.dependencies import get_scanner_service
from services.scanner_service import ScannerService

router = APIRouter(prefix='/feedback', tags=['Feedback'])
logger = logging.getLogger(__name__)

@router.post('')
async def submit_feedback(
    feedback: FeedbackRequest,
    scanner: ScannerService = Depends(get_scanner_service)
):
    """Confirm or reject a scan's findings"""
    if not feedback.scan_id or feedback.is_real is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing required fields: scanId, isReal (boolean)'
        )

    scan = await scanner.record_feedback(feedback.scan_id, feedback.is_real, feedback.comment)
    if not scan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Scan not found')

    return {
        'success': True,
        'scan': scan.model_dump(by_alias=True, mode='json'),
        'message': 'Thank you for confirming this vulnerability' if feedback.is_real
        else 'Thank you for the feedback. We will learn from this pattern.'
    }
