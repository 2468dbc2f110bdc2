"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from atm_logistics.api import imports
from atm_logistics.db.database import engine, Base
import atm_logistics.models  # noqa: F401  registers tables on Base.metadata

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="ATM Logistics Import Service",
    description="Reconciles ATM logistics spreadsheets into vendors, assets, movements and costings",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(imports.router, prefix="/api/imports", tags=["imports"])


@app.get("/")
async def root():
    return {"message": "ATM Logistics Import Service API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
