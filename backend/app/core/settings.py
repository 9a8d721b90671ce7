import os


class Settings:
    def __init__(self):
        self.app_name = "Student ID"
        self.api_version = "1.0.0"
        self.environment = os.getenv("STUDENT_ID_ENVIRONMENT", "development")
        self.secret_key = os.getenv("STUDENT_ID_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = 60 * 24
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("STUDENT_ID_DATABASE_URL", "sqlite:///./student_id.db")
        self.log_level = os.getenv("STUDENT_ID_LOG_LEVEL", "INFO")
        self.log_file = os.getenv("STUDENT_ID_LOG_FILE", "logs/student_id.log")

        # Synthesized guardian logins and admin-created users share this domain
        self.login_email_domain = "student-id.app"
        # Guardians change this after their first login
        self.guardian_default_password = "123456"
        self.password_min_length = 6
        self.max_guardians = 6
        self.max_primary_guardians = 2

        self.default_admin_email = "admin@example.com"
        self.default_admin_password = "admin123"


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
