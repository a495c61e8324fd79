from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from contact_api.core.errors import ConfigurationError
from contact_api.services.templates import TemplateVariant

SERVICE_LINK_KEYS = ("crypto", "web", "ai", "seo")


class SpreadsheetConfig(BaseModel):
    """Resolved credentials and target for the spreadsheet logger"""
    tenant_id: str
    client_id: str
    client_secret: SecretStr
    user_upn: str
    file_path: str
    table_name: str


class SmtpConfig(BaseModel):
    """Resolved mail transport settings"""
    host: str
    port: int
    user: str
    password: SecretStr
    verify: bool
    from_name: str
    owner_address: str

    @property
    def use_implicit_tls(self) -> bool:
        return self.port == 465


class Settings(BaseSettings):
    # Microsoft 365 identity provider (client-credentials grant)
    ms365_tenant_id: Optional[str] = None
    ms365_client_id: Optional[str] = None
    ms365_client_secret: Optional[SecretStr] = None

    # Workbook that receives one row per submission
    ms365_user_upn: Optional[str] = None
    excel_file_path: Optional[str] = None
    excel_table_name: str = "Table1"

    # SMTP relay - MS365_* names take precedence over the generic ones
    smtp_host: str = Field("smtp.office365.com", validation_alias=AliasChoices("MS365_SMTP_HOST", "SMTP_HOST"))
    smtp_port: int = Field(587, validation_alias=AliasChoices("MS365_SMTP_PORT", "SMTP_PORT"))
    smtp_user: Optional[str] = Field(None, validation_alias=AliasChoices("MS365_SMTP_USER", "SMTP_USER"))
    smtp_pass: Optional[SecretStr] = Field(None, validation_alias=AliasChoices("MS365_SMTP_PASS", "SMTP_PASS"))
    smtp_verify: bool = True

    mail_from_name: str = "Gator Engineered"
    mail_to_owner: Optional[str] = None
    mail_template_variant: TemplateVariant = TemplateVariant.BRANDED

    # Call-to-action links used by the email templates
    booking_link: Optional[str] = None
    book_link_crypto: Optional[str] = None
    book_link_web: Optional[str] = None
    book_link_ai: Optional[str] = None
    book_link_seo: Optional[str] = None

    # Pipeline behaviour
    contact_min_dwell_ms: Optional[int] = 3000
    contact_require_message: bool = True
    delivery_timeout_seconds: float = 10.0
    strict_config: bool = False

    # CORS settings
    allowed_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    def spreadsheet_config(self) -> SpreadsheetConfig:
        """Return the spreadsheet settings or raise ConfigurationError naming what is missing"""
        missing = [
            key for key, value in (
                ("MS365_TENANT_ID", self.ms365_tenant_id),
                ("MS365_CLIENT_ID", self.ms365_client_id),
                ("MS365_CLIENT_SECRET", self.ms365_client_secret),
                ("MS365_USER_UPN", self.ms365_user_upn),
                ("EXCEL_FILE_PATH", self.excel_file_path),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing spreadsheet settings: {', '.join(missing)}")
        return SpreadsheetConfig(
            tenant_id=self.ms365_tenant_id,
            client_id=self.ms365_client_id,
            client_secret=self.ms365_client_secret,
            user_upn=self.ms365_user_upn,
            file_path=self.excel_file_path,
            table_name=self.excel_table_name or "Table1",
        )

    def smtp_config(self) -> SmtpConfig:
        """Return the SMTP settings or raise ConfigurationError naming what is missing"""
        missing = [
            key for key, value in (
                ("SMTP_USER", self.smtp_user),
                ("SMTP_PASS", self.smtp_pass),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing SMTP credentials: {', '.join(missing)}")
        return SmtpConfig(
            host=self.smtp_host,
            port=self.smtp_port,
            user=self.smtp_user,
            password=self.smtp_pass,
            verify=self.smtp_verify,
            from_name=self.mail_from_name,
            owner_address=self.mail_to_owner or self.smtp_user,
        )

    def service_links(self) -> Dict[str, str]:
        """Card links for the autoresponder, falling back to the booking link"""
        fallback = self.booking_link or "#"
        return {key: getattr(self, f"book_link_{key}") or fallback for key in SERVICE_LINK_KEYS}

    def channel_status(self) -> Dict[str, bool]:
        """Which delivery channels have complete configuration"""
        status = {}
        for channel, resolve in (("spreadsheet", self.spreadsheet_config), ("email", self.smtp_config)):
            try:
                resolve()
                status[channel] = True
            except ConfigurationError:
                status[channel] = False
        return status


@lru_cache
def get_settings() -> Settings:
    return Settings()
