"""Application settings — fixed endpoints, paths and timeouts.

Nothing here is persisted: the launcher keeps no config file and no cache of
the last checked version. A couple of environment overrides exist for
staging servers and non-default install locations.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)

PUBLISHER_DIR = "Gormaz Informática"

DEFAULT_REMOTE_URL = "https://www.gormatica.com/servicios/soporte-remoto"
DEFAULT_INSTALL_DIR = os.path.join(
    os.environ.get('ProgramFiles(x86)') or os.environ.get('ProgramFiles', '.'),
    PUBLISHER_DIR,
)
DEFAULT_DATA_DIR = os.path.join(os.environ.get('LOCALAPPDATA', '.'), 'SupportLauncher')

ENV_REMOTE_URL = 'SUPPORTLAUNCHER_REMOTE_URL'
ENV_INSTALL_DIR = 'SUPPORTLAUNCHER_INSTALL_DIR'


@dataclass
class AppSettings:
    """Runtime settings for the update flow and the supervised tool."""
    # Remote
    remote_url: str = DEFAULT_REMOTE_URL
    version_file: str = "version.txt"
    updater_asset: str = "gormatica-updater.exe"
    request_timeout: float = 20.0
    download_chunk_size: int = 81920

    # Countdown before the updater download starts
    countdown_steps: int = 4
    countdown_tick: float = 1.0

    # Supervised remote-support tool
    install_dir: str = DEFAULT_INSTALL_DIR
    support_exe_name: str = "TeamViewerQS-idcs946vrj.exe"
    support_stop_aliases: tuple[str, ...] = (
        "TeamViewer", "TeamViewerQS", "TeamViewer_Service",
        "TeamViewer_Host", "teamviewer", "teamviewer_service",
    )
    support_confirm_aliases: tuple[str, ...] = ("TeamViewer", "TeamViewerQS")
    close_timeout: float = 5.0
    settle_timeout: float = 20.0
    poll_interval: float = 0.15

    # Auxiliary links opened in the browser
    anydesk_url: str = DEFAULT_REMOTE_URL + "/AnyDesk.exe"
    client_area_url: str = "https://www.gormatica.com/clientes/"

    # Logs only; no other state is written here
    data_dir: str = ""

    temp_dir: str = field(default_factory=tempfile.gettempdir)

    def __post_init__(self):
        self.remote_url = self.remote_url.rstrip('/')
        if not self.data_dir:
            self.data_dir = DEFAULT_DATA_DIR

    @staticmethod
    def from_env(environ=None) -> 'AppSettings':
        """Defaults, with optional overrides taken from the environment."""
        environ = os.environ if environ is None else environ
        settings = AppSettings()

        remote = environ.get(ENV_REMOTE_URL, '').strip()
        if remote:
            logger.info("Using remote override %s", remote)
            settings = replace(settings, remote_url=remote)

        install_dir = environ.get(ENV_INSTALL_DIR, '').strip()
        if install_dir:
            logger.info("Using install dir override %s", install_dir)
            settings = replace(settings, install_dir=install_dir)

        return settings

    @property
    def version_url(self) -> str:
        return f"{self.remote_url}/{self.version_file}"

    @property
    def updater_url(self) -> str:
        return f"{self.remote_url}/{self.updater_asset}"

    @property
    def updater_path(self) -> str:
        """Deterministic temp path, overwritten on every attempt."""
        return os.path.join(self.temp_dir, self.updater_asset)

    @property
    def support_exe_path(self) -> str:
        return os.path.join(self.install_dir, self.support_exe_name)

    def ensure_dirs(self):
        """Create the log directory if it doesn't exist."""
        os.makedirs(os.path.join(self.data_dir, 'logs'), exist_ok=True)
