from .patient_model import Patient
