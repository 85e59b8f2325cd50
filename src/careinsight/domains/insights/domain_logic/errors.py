"""Errors raised by the insight engine to its callers."""

from __future__ import annotations


class MissingPatientError(Exception):
    """No patient context was supplied.

    Recoverable: the caller should ask the user to select or load a patient.
    """

    def __init__(self, message: str = "No patient selected") -> None:
        super().__init__(message)


class InvalidDateError(ValueError):
    """A date argument is not an ISO ``YYYY-MM-DD`` date."""


def require_patient(patient_id: int | str | None) -> str:
    """Return the patient id as a string, or raise MissingPatientError."""
    if patient_id is None or isinstance(patient_id, bool):
        raise MissingPatientError()
    value = str(patient_id).strip()
    if not value:
        raise MissingPatientError()
    return value
