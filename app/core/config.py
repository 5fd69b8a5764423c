from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FOOTER_NOTES = (
    "Notes: Rates do not include VAT (18%). Free hours: 4 (2 loading / 2 unloading). "
    "Stand-by per hour: 10% of the rate. Overnight stay in Lima: 50% of the rate. "
    "Dead freight: 50%-100% depending on conditions. Cargo insurance not included "
    "unless requested. Dangerous goods: 20% surcharge."
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    database_url: str = "sqlite:///./quote_bot.db"

    whatsapp_verify_token: str
    whatsapp_access_token: str
    whatsapp_phone_number_id: str
    whatsapp_app_secret: str | None = None  # App Secret for webhook signature verification
    whatsapp_dry_run: bool = True  # Set to False in production to enable real sending
    whatsapp_graph_version: str = "v20.0"

    # Branding used in the welcome message and the quote document
    company_name: str = "TH Logistics"
    logo_url: str = "https://placehold.co/600x200?text=TH+Logistics"

    # Generated PDFs and downloaded packing lists are served from here
    public_base_url: str = "http://localhost:8000"
    public_dir: str = "public"

    # Tax id registry lookup (legal name enrichment); disabled when unset
    registry_api_url: str | None = None

    # Quote pricing
    tax_rate: Decimal = Decimal("0.18")
    quote_footer_notes: str = DEFAULT_FOOTER_NOTES

    # Google Sheets (lead mirror)
    google_sheets_enabled: bool = False
    google_sheets_spreadsheet_id: str | None = None
    google_sheets_credentials_json: str | None = (
        None  # Path to service account JSON or JSON content
    )
    google_sheets_range: str = "Leads!A:F"

    log_level: str = "INFO"


# Settings will load from environment variables or .env file
# Required fields will raise ValidationError if missing (fail-fast)
settings = Settings()
