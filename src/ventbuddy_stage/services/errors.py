"""Exception taxonomy shared by the service layer.

Every failure is scoped to a single operation on a single content item.
Identity and visibility failures degrade to locked decisions instead of
propagating; payment failures always reach the caller.
"""


class VentbuddyError(RuntimeError):
    """Base exception for service-level failures."""


class IdentityUnavailable(VentbuddyError):
    """No session could be resolved for a wallet address."""


class IdentityRequired(VentbuddyError):
    """A mutation was attempted without a registered wallet session."""


class AuthenticationFailed(VentbuddyError):
    """A wallet signature or bearer token could not be verified."""


class ContentNotFound(VentbuddyError):
    """The referenced post or reply does not exist."""


class InvalidReply(VentbuddyError):
    """Reply content or parent reference is not acceptable."""


class ReplyDepthExceeded(InvalidReply):
    """The parent reply is already at the maximum interaction depth."""


class PaymentFailed(VentbuddyError):
    """The payment was rejected, reverted, or did not satisfy the price."""


class PaymentUnconfirmed(VentbuddyError):
    """No confirmation signal arrived; treated exactly like a failure."""


class StoreWriteFailed(VentbuddyError):
    """Persisting a grant, vote, or reply failed."""


class GrantConflict(VentbuddyError):
    """A transaction hash is already recorded for a different grant."""


class DecodeFailed(VentbuddyError):
    """An encoded payload could not be decoded or failed authentication."""
