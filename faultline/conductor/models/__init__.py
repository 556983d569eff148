from .install_app_bundle_request import InstallAppBundleRequest as InstallAppBundleRequest
from .installed_app import InstalledApp as InstalledApp
from .wire_message import (
    AdminRequest as AdminRequest,
    AdminResponse as AdminResponse,
    WireMessage as WireMessage,
)
