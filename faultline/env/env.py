from __future__ import annotations
from pydantic import BaseModel, StrictStr, StrictInt, StrictFloat
from typing import Callable, Dict, Union

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]


def _parse_int(value: str) -> int:
    return int(value, 0)


class Env(BaseModel):
    FAULTLINE_SCRATCH_DIRECTORY: StrictStr = "./tmp"
    FAULTLINE_LOGS_DIRECTORY: StrictStr = "./log"
    FAULTLINE_LOG_LEVEL: StrictStr = "info"

    # External commands
    FAULTLINE_KEYSTORE_COMMAND: StrictStr = "lair-keystore"
    FAULTLINE_CONDUCTOR_COMMAND: StrictStr = "holochain"
    FAULTLINE_CONDUCTOR_CONFIG_PATH: StrictStr = "holochain-config.yml"
    FAULTLINE_CONDUCTOR_ADMIN_URL: StrictStr = "ws://127.0.0.1:4444/"
    FAULTLINE_APP_BUNDLE_PATH: StrictStr = "./test.happ"

    # Timing
    FAULTLINE_RPC_TIMEOUT: StrictStr = "60s"
    FAULTLINE_READINESS_TIMEOUT: StrictStr = "30s"
    FAULTLINE_READINESS_BASE_DELAY: StrictFloat = 0.1
    FAULTLINE_TERMINATE_GRACE_PERIOD: StrictStr = "5s"
    FAULTLINE_TEARDOWN_SETTLE_PERIOD: StrictStr = "3s"

    # Keystore wire
    FAULTLINE_SIGNING_REJECT_REASON: StrictStr = "purposeful signing error"
    FAULTLINE_KEYSTORE_SIGN_REQUEST_TYPE: StrictInt = 0x00000250
    FAULTLINE_KEYSTORE_ERROR_RESPONSE_TYPE: StrictInt = 0xFF000001
    FAULTLINE_KEYSTORE_MAX_FRAME_SIZE: StrictInt = 16 * 1024 * 1024

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "FAULTLINE_SCRATCH_DIRECTORY": str,
            "FAULTLINE_LOGS_DIRECTORY": str,
            "FAULTLINE_LOG_LEVEL": str,
            "FAULTLINE_KEYSTORE_COMMAND": str,
            "FAULTLINE_CONDUCTOR_COMMAND": str,
            "FAULTLINE_CONDUCTOR_CONFIG_PATH": str,
            "FAULTLINE_CONDUCTOR_ADMIN_URL": str,
            "FAULTLINE_APP_BUNDLE_PATH": str,
            "FAULTLINE_RPC_TIMEOUT": str,
            "FAULTLINE_READINESS_TIMEOUT": str,
            "FAULTLINE_READINESS_BASE_DELAY": float,
            "FAULTLINE_TERMINATE_GRACE_PERIOD": str,
            "FAULTLINE_TEARDOWN_SETTLE_PERIOD": str,
            "FAULTLINE_SIGNING_REJECT_REASON": str,
            "FAULTLINE_KEYSTORE_SIGN_REQUEST_TYPE": _parse_int,
            "FAULTLINE_KEYSTORE_ERROR_RESPONSE_TYPE": _parse_int,
            "FAULTLINE_KEYSTORE_MAX_FRAME_SIZE": _parse_int,
        }

    def get_timeouts(self) -> dict[str, float]:
        """Get every duration setting in seconds."""
        parser = TimeParser()

        return {
            'rpc_timeout': parser.parse(self.FAULTLINE_RPC_TIMEOUT),
            'readiness_timeout': parser.parse(self.FAULTLINE_READINESS_TIMEOUT),
            'terminate_grace_period': parser.parse(self.FAULTLINE_TERMINATE_GRACE_PERIOD),
            'teardown_settle_period': parser.parse(self.FAULTLINE_TEARDOWN_SETTLE_PERIOD),
        }

    def get_keystore_wire_config(self) -> dict:
        """Get the keystore framing settings used by the signing proxy."""
        return {
            'sign_request_type': self.FAULTLINE_KEYSTORE_SIGN_REQUEST_TYPE,
            'error_response_type': self.FAULTLINE_KEYSTORE_ERROR_RESPONSE_TYPE,
            'max_frame_size': self.FAULTLINE_KEYSTORE_MAX_FRAME_SIZE,
        }
