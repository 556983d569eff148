from .agent_identity import AgentIdentity as AgentIdentity
from .frame import (
    KeystoreFrame as KeystoreFrame,
    read_frame as read_frame,
)
from .keystore_wire import KeystoreWire as KeystoreWire
