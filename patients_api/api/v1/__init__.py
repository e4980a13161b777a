from fastapi import APIRouter
from .patient.patient_routes import router as patient_router

router = APIRouter()


router.include_router(patient_router)
