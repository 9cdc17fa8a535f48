"""MediBook - appointment booking and slot validation for clinics."""

__version__ = "0.1.0"
