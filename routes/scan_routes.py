# Scan routes
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
import logging
from schemas.scan import ScanRequest, ScanStatus
from services.dependencies import get_scanner_service
from services.scanner_service import ScannerService

router = APIRouter(prefix='/scan', tags=['Scans'])
logger = logging.getLogger(__name__)

@router.post('')
async def manual_scan(
    scan_request: ScanRequest,
    scanner: ScannerService = Depends(get_scanner_service)
):
    """Scan a pasted snippet (the frontend "Scan" button)"""
    if not scan_request.code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Code is required')

    logger.info(f'Manual scan requested: {scan_request.filename or "input.js"}')

    scan = await scanner.scan_code(
        scan_request.code,
        scan_request.filename or 'input.js',
        scan_request.repo or 'manual',
        scan_request.pr_number,
        scan_request.language
    )

    body = {'success': scan.status == ScanStatus.COMPLETED, 'scan': scan.model_dump(by_alias=True, mode='json')}
    if scan.status == ScanStatus.FAILED:
        body['error'] = scan.error
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)

    return body

@router.get('')
async def list_scans(
    limit: int = Query(50, ge=1, le=500),
    scanner: ScannerService = Depends(get_scanner_service)
):
    """Recent scan history with global stats"""
    scans = await scanner.list_scans(limit)
    stats = await scanner.get_stats()

    return {
        'success': True,
        'scans': [s.model_dump(by_alias=True, mode='json') for s in scans],
        'stats': stats.model_dump(by_alias=True, mode='json'),
        'count': len(scans)
    }

@router.get('/stats')
async def get_stats(scanner: ScannerService = Depends(get_scanner_service)):
    stats = await scanner.get_stats()
    return {'success': True, 'stats': stats.model_dump(by_alias=True, mode='json')}

@router.get('/{scan_id}')
async def get_scan(
    scan_id: str,
    scanner: ScannerService = Depends(get_scanner_service)
):
    scan = await scanner.get_scan(scan_id)
    if not scan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Scan not found')

    return {'success': True, 'scan': scan.model_dump(by_alias=True, mode='json')}
