"""medportal - AI core of the patient/doctor/admin healthcare portal."""

__version__ = "0.3.0"
