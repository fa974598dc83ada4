"""Shared service instances for the API process."""
from ..config.settings import get_settings
from ..services import build_invoice_service
from ..utils.logger import setup_logging

settings = get_settings()
setup_logging(settings.log_level)

invoice_service = build_invoice_service(settings)
