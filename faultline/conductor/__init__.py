from .admin_client import AdminClient as AdminClient
from .models import (
    InstallAppBundleRequest as InstallAppBundleRequest,
    InstalledApp as InstalledApp,
)
