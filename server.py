# ZeroFalse API Server
from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from config import get_settings
from routes import scan_router, feedback_router, webhook_router
from services.dependencies import Services

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await Services.startup()
    logger.info('Application started')
    yield
    # Shutdown
    await Services.shutdown()
    logger.info('Application shutdown')

app = FastAPI(
    title='ZeroFalse API',
    description='Hybrid pattern + LLM security scanner for pull requests',
    version='1.0.0',
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(','),
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# API Router
api_router = APIRouter(prefix='/api')

api_router.include_router(scan_router)
api_router.include_router(feedback_router)
api_router.include_router(webhook_router)

app.include_router(api_router)

@app.get('/health')
async def health():
    return {
        'status': 'OK',
        'service': 'ZeroFalse Backend',
        'timestamp': datetime.now(timezone.utc).isoformat()
    }

@app.get('/api/health')
async def api_health():
    return {
        'status': 'healthy',
        'service': 'zerofalse-api',
        'version': '1.0.0'
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", reload=True)
