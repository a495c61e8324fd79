from fastapi import Depends

from contact_api.core.config import Settings, get_settings
from contact_api.services.mailer import EmailDispatcher
from contact_api.services.spreadsheet import SpreadsheetLogger


def get_spreadsheet_logger(settings: Settings = Depends(get_settings)) -> SpreadsheetLogger:
    return SpreadsheetLogger(settings)


def get_email_dispatcher(settings: Settings = Depends(get_settings)) -> EmailDispatcher:
    return EmailDispatcher(settings)
