from .base import BaseSettings


class TemplateSettings(BaseSettings):
    email_path: str = "templates/email"
