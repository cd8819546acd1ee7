"""Main FastAPI application"""
from fastapi import FastAPI
from sitewise.middleware.cors import setup_cors
from sitewise.middleware.error_handler import ErrorHandlerMiddleware
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SiteWise API",
    description="Embeddable AI chat widget backend",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Setup CORS
setup_cors(app)

# Add error handling middleware
app.add_middleware(ErrorHandlerMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "sitewise-backend"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "SiteWise Backend API",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from sitewise.routers import chat, widget, dashboard

app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(widget.router, prefix="/api/widget", tags=["Widget"])
app.include_router(widget.page_router, tags=["Widget Page"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
