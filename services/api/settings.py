# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
import base64
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    # Storage settings
    # memory | json | sqlite | sheets  (memory is process-lifetime only)
    storage_backend: str = "memory"
    data_dir: str = "data"
    db_url: str = "sqlite:///data/intake.db"
    google_sa_json: str = ""
    google_sa_json_base64: str = ""
    sheets_spreadsheet_id: str = ""

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:5000,http://localhost:8000"

    # Email settings
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = ""
    smtp_from_name: str = "Client Intake Form"

    # Fixed operator mailbox that receives every submission summary
    operator_email: str = ""

    # Example in .env:
    # SMTP_ALWAYS_CC=person1@example.com,person2@example.com
    smtp_always_cc: Optional[str] = Field(
        default=None,
        description="Comma-separated emails that will be CC'ed on every submission summary",
    )

    # Google Drive settings (image hosting)
    gdrive_root_folder_name: str = "Client_Intake"
    # Optional: if you create the root folder manually & share it, put its ID here
    gdrive_root_folder_id: str = ""
    # Subfolder under the root where form pictures land
    gdrive_images_subfolder: str = "client-form-services"

    # Upload limits (per /api/upload-images call)
    max_images_per_upload: int = 20
    max_image_bytes: int = 10 * 1024 * 1024

    # GET /api/client-submissions cache
    list_cache_ttl_seconds: int = 5

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )


    def resolved_google_sa_json(self) -> str:
        """
        Return the path to the service account JSON.
        If GOOGLE_SA_JSON_BASE64 is set, decode it to a temp file.
        Otherwise return GOOGLE_SA_JSON path.
        """
        if self.google_sa_json_base64:
            import tempfile

            decoded = base64.b64decode(self.google_sa_json_base64)
            temp_file = tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json')
            temp_file.write(decoded.decode('utf-8'))
            temp_file.close()
            return temp_file.name

        return self.google_sa_json

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_always_cc_list(self) -> List[str]:
        if not self.smtp_always_cc:
            return []
        return [addr.strip() for addr in self.smtp_always_cc.split(",") if addr.strip()]

    def smtp_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password and self.operator_email)


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
