import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./ecf.db")
    MIGRATION_DB_URI = data.get("MIGRATION_DB_URI", "sqlite:///./ecf.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Certification service (TheFactoryHKA)
    THEFACTORY_AUTH_URL = data.get(
        "THEFACTORY_AUTH_URL", "https://demoemision.thefactoryhka.com.do/api/Autenticacion"
    )
    THEFACTORY_SEND_URL = data.get(
        "THEFACTORY_SEND_URL", "https://demoemision.thefactoryhka.com.do/api/Enviar"
    )
    THEFACTORY_STATUS_URL = data.get(
        "THEFACTORY_STATUS_URL", "https://demoemision.thefactoryhka.com.do/api/EstatusDocumento"
    )
    THEFACTORY_ANNUL_URL = data.get(
        "THEFACTORY_ANNUL_URL", "https://demoemision.thefactoryhka.com.do/api/Anulacion"
    )
    THEFACTORY_DOWNLOAD_URL = data.get(
        "THEFACTORY_DOWNLOAD_URL", "https://demoemision.thefactoryhka.com.do/api/DescargaArchivo"
    )
    THEFACTORY_USER = data.get("THEFACTORY_USER", "")
    THEFACTORY_PASSWORD = data.get("THEFACTORY_PASSWORD", "")
    THEFACTORY_RNC = data.get("THEFACTORY_RNC", "")

    # Timeouts in seconds
    THEFACTORY_AUTH_TIMEOUT = data.get("THEFACTORY_AUTH_TIMEOUT", 15)
    THEFACTORY_SEND_TIMEOUT = data.get("THEFACTORY_SEND_TIMEOUT", 60)
    THEFACTORY_STATUS_TIMEOUT = data.get("THEFACTORY_STATUS_TIMEOUT", 10)
    THEFACTORY_ANNUL_TIMEOUT = data.get("THEFACTORY_ANNUL_TIMEOUT", 30)
    THEFACTORY_DOWNLOAD_TIMEOUT = data.get("THEFACTORY_DOWNLOAD_TIMEOUT", 30)

    # Token cache
    TOKEN_REFRESH_MARGIN_SECONDS = data.get("TOKEN_REFRESH_MARGIN_SECONDS", 300)  # 5 minutes
    TOKEN_DEFAULT_TTL_SECONDS = data.get("TOKEN_DEFAULT_TTL_SECONDS", 3600)

    # Sequence ranges
    SEQUENCE_ALERT_THRESHOLD = data.get("SEQUENCE_ALERT_THRESHOLD", 10)
    SEQUENCE_EXPIRING_WINDOW_DAYS = data.get("SEQUENCE_EXPIRING_WINDOW_DAYS", 30)

    # DGII verification links
    DGII_QR_URL = data.get("DGII_QR_URL", "https://ecf.dgii.gov.do/ecf/ConsultaTimbre")
    DGII_QR_URL_FINAL_CONSUMER = data.get(
        "DGII_QR_URL_FINAL_CONSUMER", "https://fc.dgii.gov.do/ecf/ConsultaTimbreFC"
    )

    # Failure notifications
    SUPPORT_EMAIL = data.get("SUPPORT_EMAIL", None)
    BREVO_API_URL = data.get("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
    BREVO_API_KEY = data.get("BREVO_API_KEY", None)
    BREVO_SENDER_EMAIL = data.get("BREVO_SENDER_EMAIL", "no-reply@example.com")
    BREVO_SENDER_NAME = data.get("BREVO_SENDER_NAME", "e-CF Service")
    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)

    # Range expiry sweep
    RANGE_EXPIRY_ENABLED = bool(data.get("RANGE_EXPIRY_ENABLED", True))
    RANGE_EXPIRY_INTERVAL_SECONDS = data.get("RANGE_EXPIRY_INTERVAL_SECONDS", 3600)  # Hourly
