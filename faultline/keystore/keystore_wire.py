from dataclasses import dataclass

from .frame import KeystoreFrame, decode_error_body, encode_error_body


@dataclass(slots=True, frozen=True)
class KeystoreWire:
    """Wire type codes the proxy needs to recognise on the keystore channel."""

    sign_request_type: int = 0x00000250
    error_response_type: int = 0xFF000001
    max_frame_size: int = 16 * 1024 * 1024

    def is_sign_request(self, frame: KeystoreFrame) -> bool:
        return frame.wire_type == self.sign_request_type

    def is_error(self, frame: KeystoreFrame) -> bool:
        return frame.wire_type == self.error_response_type

    def error_response(self, msg_id: int, reason: str) -> KeystoreFrame:
        return KeystoreFrame.build(
            self.error_response_type,
            msg_id,
            encode_error_body(reason),
        )

    def error_reason(self, frame: KeystoreFrame) -> str | None:
        if not self.is_error(frame):
            return None

        return decode_error_body(frame.body)
