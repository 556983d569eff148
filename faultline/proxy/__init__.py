from .decision import (
    AlwaysForward as AlwaysForward,
    Decision as Decision,
    DecisionStrategy as DecisionStrategy,
    DenylistReject as DenylistReject,
    Forward as Forward,
    Reject as Reject,
)
from .denylist import Denylist as Denylist
from .signing_outcome import (
    SigningOutcome as SigningOutcome,
    SigningOutcomeKind as SigningOutcomeKind,
)
from .signing_proxy import (
    SigningProxy as SigningProxy,
    start_signing_proxy as start_signing_proxy,
)
