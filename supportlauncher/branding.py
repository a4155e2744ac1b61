"""Centralized branding constants — single source of truth for version."""


class AppBranding:
    """Application identity constants."""

    APP_NAME = "SupportLauncher"
    PUBLISHER = "Gormaz Informática"
    VERSION = "1.4.2"

    @classmethod
    def window_title(cls) -> str:
        return f"{cls.PUBLISHER} · Soporte remoto"

    @classmethod
    def version_label(cls) -> str:
        return f"Version {cls.VERSION}"

    @classmethod
    def update_label(cls, latest) -> str:
        return f"Version {cls.VERSION} · version {latest} available!"

    @classmethod
    def user_agent(cls) -> str:
        return f"{cls.APP_NAME}/{cls.VERSION}"
