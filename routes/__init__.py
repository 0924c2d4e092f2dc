from routes.scan_routes import router as scan_router
from routes.feedback_routes import router as feedback_router
from routes.webhook_routes import router as webhook_router

__all__ = [
    'scan_router',
    'feedback_router',
    'webhook_router'
]
